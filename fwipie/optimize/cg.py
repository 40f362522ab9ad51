from fwipie.optimize.base import base
from fwipie.optimize.line_search.bracket import bracket
import numpy as np

class cg(base):
	""" nonlinear conjugate gradients, Polak-Ribiere with restarts
	"""
	def setup(self, obj, lower=None, upper=None):
		self.bracket = bracket(obj.value, self.project, self.config)

	def line_search(self, misfit):
		return self.bracket.run(self.m_new, self.g_new, self.p_new, misfit)

	def restart_search(self):
		if self.config['verbose']:
			print('  restarting %s: not descent' % type(self).__name__)
		self.bracket.restart()

	def polak_ribiere(self, g_new, g_old):
		return np.dot(g_new, g_new - g_old) / np.dot(g_old, g_old)

	def compute_direction(self):
		g_new = self.projected_gradient()
		if not hasattr(self, 'g_old'):
			return -g_new

		beta = self.polak_ribiere(g_new, self.g_old)
		p_new = -g_new + max(beta, 0.0) * self.p_old

		if np.dot(p_new, g_new) >= 0:
			self.restart_search()
			return -g_new

		return p_new
