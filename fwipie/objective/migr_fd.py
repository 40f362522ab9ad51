import numpy as np

from fwipie.objective.ls import ls
from fwipie.inversion.engine import F, visualize_gx

class migr_fd(ls):
	""" migration image by central finite differences of the misfit,
	two simulations per inversion variable
	"""
	iterative = False

	def __init__(self, step=None):
		self.step = step

	def image(self):
		pa = self.pa
		x0 = pa.mx.x.copy()
		g = pa.mx.gm[0]
		print('> number of functional evaluations:\t', 2 * x0.size)

		xp = x0.copy()
		for i in range(x0.size):
			h = self.step or np.cbrt(np.finfo(float).eps) * max(abs(x0[i]), 1.0)
			xp[i] = x0[i] + h
			fp = self.value(xp)
			xp[i] = x0[i] - h
			fm = self.value(xp)
			xp[i] = x0[i]
			g[i] = (fp - fm) / (2 * h)

		# leave the session in x0
		F(pa, x0)
		return visualize_gx(pa, g)
