from time import time
from scipy.optimize import OptimizeResult
import numpy as np

defaults = {
	'niter': 5,
	'f_tol': 1e-5,
	'g_tol': 1e-8,
	'x_tol': 1e-5,
	'ls_step': 5,
	'ls_step_max': 0.5,
	'ls_step_init': 0.05,
	'ls_thresh': 1.2,
	'lbfgs_mem': 5,
	'verbose': True
}

class base:
	""" minimizer of an objective exposing value(x) and value_and_gradient(x, out)
	"""
	def __init__(self, config=None):
		self.config = dict(defaults)
		self.configure(config)

	def configure(self, config):
		""" update options from a dict or a config.ini section
		"""
		if config is None:
			return

		for key, value in dict(config).items():
			if key not in defaults:
				self.config[key] = value
			elif isinstance(defaults[key], bool) and isinstance(value, str):
				self.config[key] = value.strip().lower() in ('yes', 'true', '1')
			else:
				self.config[key] = type(defaults[key])(value)

	def setup(self, obj, lower=None, upper=None):
		raise NotImplementedError

	def compute_direction(self):
		raise NotImplementedError

	def line_search(self, misfit):
		raise NotImplementedError

	def restart_search(self):
		raise NotImplementedError

	def project(self, m):
		if self.lower is None:
			return m
		return np.clip(m, self.lower, self.upper)

	def minimize(self, obj, x0, lower=None, upper=None):
		self.lower = lower
		self.upper = upper
		self.setup(obj, lower, upper)
		for key in ['g_old', 'p_old', 'm_old']:
			if hasattr(self, key):
				delattr(self, key)

		niter = int(self.config['niter'])
		verbose = self.config['verbose']
		start = time()

		misfits = []
		self.m_new = self.project(np.array(x0, dtype='float64'))
		g = np.zeros_like(self.m_new)
		success = False
		message = 'maximum number of iterations reached'
		nit = 0

		for i in range(niter):
			if verbose:
				print('Iteration %d' % (i+1))

			misfit, self.g_new = obj.value_and_gradient(self.m_new, g.copy())
			misfits.append(misfit)

			if np.amax(abs(self.projected_gradient())) <= self.config['g_tol']:
				success = True
				message = 'gradient below tolerance'
				break

			if i > 0 and abs(misfits[-2] - misfit) <= self.config['f_tol'] * abs(misfits[-2]):
				success = True
				message = 'relative misfit change below tolerance'
				break

			self.p_new = self.compute_direction()

			self.m_old = self.m_new
			self.p_old = self.p_new
			self.g_old = self.g_new

			nit = i + 1
			status, self.m_new = self.line_search(misfit)
			if status < 0:
				message = 'line search failed'
				if verbose:
					print('Line search failed')
				break

			if np.amax(abs(self.m_new - self.m_old)) <= self.config['x_tol']:
				success = True
				message = 'step below tolerance'
				break

			if verbose:
				print('')

		misfit = obj.value(self.m_new)
		misfits.append(misfit)

		if verbose:
			print('Misfits:')
			for f in misfits:
				print('  %.4e' % f)

			print('')
			print('Elapsed time: %.2fs' % (time() - start))

		return OptimizeResult(x=self.m_new, fun=misfit, nit=nit, success=success,
			message=message, misfits=np.array(misfits))

	def projected_gradient(self):
		""" gradient components that can still move inside the bounds
		"""
		if self.lower is None:
			return self.g_new
		m = self.m_new
		g = self.g_new.copy()
		g[(m <= self.lower) & (g > 0)] = 0
		g[(m >= self.upper) & (g < 0)] = 0
		return g
