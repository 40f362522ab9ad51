from os import path
import numpy as np

from fwipie.acquisition.geom import fixed_spread
from fwipie.acquisition.src import src
from fwipie.inversion.param import param
from fwipie.model.medium import medium, grid
from fwipie.tools.config import get_list, get_flag

def get_floats(section, key, default=''):
	return [float(v) for v in get_list(section, key, default)]

class base:
	""" workflow
	"""

	def setup(self, config):
		""" initialize
		"""
		self.config = config
		self.path = config['path']

	def run(self):
		""" start workflow
		"""
		raise NotImplementedError

	@property
	def modules(self):
		""" modules to load
		"""
		return []

	def import_model(self, model_true):
		""" model from [model], with fields read from model_true or
		model_init when these paths are set
		"""
		cfg = self.config['model']
		z = grid(0.0, float(cfg['zmax']), float(cfg['dz']))
		x = grid(0.0, float(cfg['xmax']), float(cfg['dx']))
		mod = medium(z, x, get_floats(cfg, 'vpb'), get_floats(cfg, 'rhob'))

		key = 'model_true' if model_true else 'model_init'
		if key in self.path:
			for name in mod.names:
				mod.update(name, self.import_field(path.join(self.path[key], name + '.bin')))

		elif model_true and 'anomaly' in cfg:
			# circular anomaly z, x, radius, relative perturbation
			z0, x0, rad, pert = get_floats(cfg, 'anomaly')
			mod.addon((z0, x0), rad, pert)

		return mod

	def import_acquisition(self):
		cfg = self.config['acquisition']
		geom = fixed_spread(get_floats(cfg, 'sx'), get_floats(cfg, 'sz'),
			get_floats(cfg, 'rx'), get_floats(cfg, 'rz'))

		mcfg = self.config['modeling']
		tgrid = float(mcfg['dt']) * np.arange(int(mcfg['nt']))
		f0 = float(mcfg['f0'])
		return geom, src.ricker(geom, tgrid, f0), tgrid

	def create_session(self):
		mcfg = self.config['modeling']
		icfg = self.config['inversion']
		geom, wav, tgrid = self.import_acquisition()
		modm = self.import_model(False)

		igrid = None
		if 'dz' in icfg and 'dx' in icfg:
			igrid = (grid(modm.z[0], modm.z[-1], float(icfg['dz'])), grid(modm.x[0], modm.x[-1], float(icfg['dx'])))

		return param(wav, geom, tgrid, mcfg.get('method', 'fdtd'), modm,
			igrid=igrid,
			igrid_interp_scheme=icfg.get('interp_scheme', 'B2'),
			mprecon_factor=float(icfg.get('mprecon_factor', '1.0')),
			tlagssf_frac=float(icfg.get('tlagssf_frac', '0.0')),
			taper_frac=float(icfg.get('taper_frac', '0.0')),
			modm_obs=self.import_model(True),
			parameterization=get_list(icfg, 'parameterization', 'chi_vp, chi_rho, null'),
			abs_width=int(mcfg.get('abs_width', '0')),
			abs_alpha=float(mcfg.get('abs_alpha', '0.0')),
			verbose=get_flag(icfg, 'verbose'))

	def import_field(self, filename):
		with open(filename, 'rb') as f:
			nz, nx = np.fromfile(f, dtype='int32', count=2)
			return np.fromfile(f, dtype='float32').reshape(nz, nx).astype('float64')

	def export_field(self, field, name, it=0):
		field = np.atleast_2d(field)
		name = '%06d_%s' % (it, name)
		with open(path.join(self.path['output'], name + '.bin'), 'wb') as f:
			np.array(field.shape, dtype='int32').tofile(f)
			field.astype('float32').tofile(f)
