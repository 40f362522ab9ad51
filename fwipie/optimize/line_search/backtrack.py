from fwipie.optimize.line_search.bracket import bracket

class backtrack(bracket):
	""" unit step first (quasi-Newton directions are scaled), shortened
	by quadratic interpolation until the misfit decreases
	"""
	def calculate_step(self, count, step_max):
		if self.nsearch == 0:
			# first iteration, direction is the raw gradient
			return super().calculate_step(count, step_max)

		if count == 0:
			return min(1.0, step_max), 0

		x, f = self.history(count)
		if f.min() < f[0]:
			return x[f.argmin()], 1

		if count <= self.nstep:
			# derivative of the misfit along p at the unit step scale
			return self.backtrack(f[0], self.gtp[-1], x[1], f[1], 0.1, 0.5), 0

		return 0, -1
