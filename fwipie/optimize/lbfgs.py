from fwipie.optimize.cg import cg
from fwipie.optimize.line_search.backtrack import backtrack
import numpy as np

def two_loop(g, s, y):
	""" inverse Hessian approximation applied to g, pairs newest first
	"""
	rho = [1 / np.dot(yi, si) for si, yi in zip(s, y)]
	alpha = []

	q = np.copy(g)
	for si, yi, ri in zip(s, y, rho):
		a = ri * np.dot(si, q)
		q -= a * yi
		alpha.append(a)

	q *= np.dot(y[0], s[0]) / np.dot(y[0], y[0])

	for si, yi, ri, a in reversed(list(zip(s, y, rho, alpha))):
		b = ri * np.dot(yi, q)
		q += si * (a - b)

	return q

class lbfgs(cg):
	""" limited-memory BFGS with a backtracking line search
	"""
	def setup(self, obj, lower=None, upper=None):
		self.bracket = backtrack(obj.value, self.project, self.config)
		self.mem = int(self.config['lbfgs_mem'])
		self.s = []
		self.y = []

	def restart_search(self):
		super().restart_search()
		self.s = []
		self.y = []

	def compute_direction(self):
		g_new = self.projected_gradient()
		if not hasattr(self, 'g_old'):
			return -g_new

		s = self.m_new - self.m_old
		y = self.g_new - self.g_old
		if np.dot(y, s) <= 0:
			# curvature condition fails near active bounds
			self.restart_search()
			return -g_new

		self.s = [s] + self.s[:self.mem - 1]
		self.y = [y] + self.y[:self.mem - 1]

		q = two_loop(g_new, self.s, self.y)
		if self.bracket.angle(g_new, q) >= np.pi / 2:
			self.restart_search()
			return -g_new

		return -q
