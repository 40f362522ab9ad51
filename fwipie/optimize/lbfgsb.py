from time import time
from scipy.optimize import minimize
from fwipie.optimize.base import base
import numpy as np

class lbfgsb(base):
	""" scipy L-BFGS-B, bounded when bounds are given
	"""
	def setup(self, obj, lower=None, upper=None):
		pass

	def minimize(self, obj, x0, lower=None, upper=None):
		config = self.config
		start = time()
		bounds = None
		if lower is not None:
			bounds = list(zip(lower, upper))
		x0 = np.array(x0, dtype='float64')
		if bounds is not None:
			x0 = np.clip(x0, lower, upper)

		misfits = []

		def fun(x):
			f, g = obj.value_and_gradient(x, np.zeros_like(x))
			misfits.append(f)
			return f, g

		def callback(xk):
			if config['verbose']:
				print('Iteration %d' % len(misfits))

		res = minimize(fun, x0, jac=True, method='L-BFGS-B', bounds=bounds, callback=callback,
			options={
				'maxiter': int(config['niter']),
				'ftol': config['f_tol'],
				'gtol': config['g_tol'],
				'maxcor': int(config['lbfgs_mem'])
			})

		res.misfits = np.array(misfits)

		if config['verbose']:
			print(res.message)
			print('Elapsed time: %.2fs' % (time() - start))

		return res
