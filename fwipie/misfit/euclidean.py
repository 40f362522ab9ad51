import numpy as np

def error_squared_euclidean(g, x, y, w=None, norm_flag=False):
	""" J = sum w (x - y)^2, normalized by sum w y^2 if norm_flag;
	gradient with respect to x is put in g unless g is None
	"""
	w = 1.0 if w is None else w
	r = x - y
	J = float(np.sum(w * r * r))
	scale = 1.0
	if norm_flag:
		n = float(np.sum(w * y * y))
		if n > 0.0:
			scale = 1.0 / n
	if g is not None:
		g[...] = 2.0 * scale * w * r

	return J * scale

def error_weighted_norm(g, x, w):
	""" J = sum w x^2
	"""
	J = float(np.sum(w * x * x))
	if g is not None:
		g[...] = 2.0 * w * x

	return J

def derivative_vector_magnitude(g, dxn, x):
	""" gradient w.r.t. x given dxn, the gradient w.r.t. x / |x|
	"""
	xn = np.linalg.norm(x)
	g[:] = dxn / xn - x * np.dot(x, dxn) / xn ** 3
	return g

def error_after_normalized_autocor(x, y):
	""" misfit between normalized autocorrelations, insensitive to time shifts
	"""
	def autocor(a):
		a = np.asarray(a, dtype='float64')
		if a.ndim == 1:
			a = a[:, None]
		a = a - a.mean(axis=0)
		c = np.stack([np.correlate(a[:, i], a[:, i], mode='full') for i in range(a.shape[1])], axis=1)
		n = np.abs(c).max()
		return c / n if n > 0 else c

	return error_squared_euclidean(None, autocor(x), autocor(y), norm_flag=True)
