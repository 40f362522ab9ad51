from time import time
from scipy.optimize import OptimizeResult
import numpy as np

def roundtrip(funcs):
	""" one pass over every function, sum of the values
	"""
	return sum(f() for f in funcs)

def altmin(funcs, roundtrip_tol=1e-6, max_roundtrips=100, min_roundtrips=1,
	max_reroundtrips=1, reinit_func=None, after_reroundtrip_func=None, name='alternating minimization',
	verbose=True):
	""" alternate between the minimizations in funcs, each a callable
	returning its final misfit, until the relative change of the summed
	misfit over a round trip drops below roundtrip_tol

	A run of round trips that does not converge within max_roundtrips
	is restarted, at most max_reroundtrips times; reinit_func runs
	before every run of round trips.
	"""
	assert 1 <= min_roundtrips <= max_roundtrips
	assert max_reroundtrips >= 1
	start = time()
	if verbose:
		print('Starting %s' % name)

	misfits = []
	success = False
	nit = 0

	for irr in range(max_reroundtrips):
		if reinit_func is not None:
			reinit_func()

		for itr in range(max_roundtrips):
			misfits.append(roundtrip(funcs))
			nit += 1

			if verbose:
				print('  round trip %d: %.4e' % (nit, misfits[-1]))

			# round trips of an earlier run are not compared
			if itr >= 1 and itr + 1 >= min_roundtrips:
				change = abs(misfits[-1] - misfits[-2])
				if misfits[-2] == 0 or change <= roundtrip_tol * abs(misfits[-2]):
					success = True
					break

		if after_reroundtrip_func is not None:
			after_reroundtrip_func()

		if success:
			break

		if verbose and irr + 1 < max_reroundtrips:
			print('  restarting round trips')

	if verbose:
		print('%s %s after %d round trips, %.2fs' % (name, 'converged' if success else 'stopped', nit, time() - start))

	message = 'converged' if success else 'maximum number of round trips reached'
	return OptimizeResult(fun=misfits[-1], nit=nit, success=success, message=message, misfits=np.array(misfits))
