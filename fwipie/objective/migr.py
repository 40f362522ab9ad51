from fwipie.objective.ls import ls
from fwipie.inversion.engine import visualize_gx

class migr(ls):
	""" gradient at the initial model, i.e. a migration image
	"""
	iterative = False

	def image(self):
		mx = self.pa.mx
		g = mx.gm[0]
		self.gradient(mx.x, g)
		return visualize_gx(self.pa, g)
