import numpy as np

GOLDEN = 1.618034

class bracket:
	""" bracketing line search along p for the misfit func of the optimization
	vector; trial vectors are projected onto the bounds before evaluation

	steps and misfits of every search since the last restart are kept,
	a zero step marks the start of a search
	"""
	def __init__(self, func, project, config):
		self.func = func
		self.project = project
		self.verbose = config['verbose']

		self.nstep = int(config['ls_step'])
		self.step_max = float(config['ls_step_max'])
		self.step_init = float(config['ls_step_init'])
		self.thresh = float(config['ls_thresh'])
		self.restart()

	def restart(self):
		self.steps = []
		self.misfits = []
		self.gtg = []
		self.gtp = []

	@property
	def nsearch(self):
		""" searches completed before the current one
		"""
		return self.steps.count(0) - 1

	def angle(self, x, y):
		c = np.dot(x, y) / np.sqrt(np.dot(x, x) * np.dot(y, y))
		return np.arccos(np.clip(c, -1.0, 1.0))

	def trial(self, m, p, alpha):
		return self.project(m + alpha * p)

	def run(self, m, g, p, f):
		""" returns the status (1 accepted, -1 failed) and the new vector
		"""
		norm_p = np.amax(abs(p))
		if norm_p == 0:
			return -1, m

		# vector of the homogeneous reference model is zero
		norm_m = np.amax(abs(m)) or 1.0
		step_max = self.step_max * norm_m / norm_p

		self.steps.append(0)
		self.misfits.append(f)
		self.gtg.append(np.dot(g, g))
		self.gtp.append(np.dot(g, p))

		if self.step_init and self.nsearch == 0:
			alpha = self.step_init * norm_m / norm_p
		else:
			alpha, _ = self.calculate_step(0, step_max)

		count = 0
		while True:
			count += 1
			if self.verbose:
				print('  trial step %d' % count)

			self.steps.append(alpha)
			self.misfits.append(self.func(self.trial(m, p, alpha)))

			alpha, status = self.calculate_step(count, step_max)
			if status > 0:
				return status, self.trial(m, p, alpha)

			if status < 0:
				if self.angle(p, -g) < 1e-3:
					return status, m

				# search again along the steepest descent
				if self.verbose:
					print('  restarting line search')
				self.restart()
				return self.run(m, g, -g, f)

	def history(self, count):
		""" steps and misfits of the current search sorted by step length
		"""
		x = np.array(self.steps[-count - 1:])
		f = np.array(self.misfits[-count - 1:])
		order = abs(x).argsort()
		return x[order], f[order]

	def calculate_step(self, count, step_max):
		x, f = self.history(count)

		if count == 0:
			if self.nsearch == 0:
				alpha = 1 / self.gtg[-1]
			else:
				# scale the best step of the previous searches by the slope ratio
				prev = np.array(self.misfits[:-1])
				alpha = self.steps[int(prev.argmin())] * self.gtp[-2] / self.gtp[-1]

			if alpha > step_max:
				alpha = 0.618034 * step_max
			return alpha, 0

		if self.is_bracketed(x, f):
			if self.is_good_enough(x, f):
				alpha, status = x[f.argmin()], 1
			else:
				alpha, status = self.parabola(x, f), 0

		elif count <= self.nstep:
			if all(f <= f[0]):
				alpha = GOLDEN * x[count]
			else:
				alpha = self.backtrack(f[0], self.gtp[-1] / self.gtg[-1], x[1], f[1], 0.1, 0.5)
			status = 0

		else:
			return 0, -1

		if alpha > step_max:
			alpha, status = step_max, 1

		return alpha, status

	def is_bracketed(self, x, f):
		imin = f.argmin()
		return f[imin] < f[0] and any(f[imin:] > f[imin])

	def is_good_enough(self, x, f):
		x0 = self.parabola(x, f)
		return any(np.abs(np.log10(x[1:] / x0)) < np.log10(self.thresh))

	def parabola(self, x, f):
		""" minimum of the parabola through the best step and its neighbours
		"""
		i = f.argmin()
		p = np.polyfit(x[i - 1:i + 2], f[i - 1:i + 2], 2)
		if p[0] > 0:
			return -p[1] / (2 * p[0])

		# concave fit, keep the best step so far
		return x[i]

	def backtrack(self, f0, g0, x1, f1, b1, b2):
		""" minimum of the quadratic through f0, slope g0 and (x1, f1),
		kept within [b1 x1, b2 x1]
		"""
		x2 = -g0 * x1 ** 2 / (2 * (f1 - f0 - g0 * x1))
		return min(max(x2, b1 * x1), b2 * x1)
