""" scheduling of forward and adjoint simulations for an inversion session

Within one functional and gradient evaluation the order is always
F (forward, background buffer stored), misfit, update_adjsrc, Fadj.
"""
import numpy as np

from fwipie.model import parameterization as param
from fwipie.misfit.waveform import waveform

def isequal(x, last_x):
	""" bitwise comparison, the only test deciding re-simulation
	"""
	return x.shape == last_x.shape and x.tobytes() == last_x.tobytes()

def x_to_modm(pa, x):
	""" put x into modi (inversion grid) and modm (modelling grid)
	"""
	mx = pa.mx
	pa.mprecon.solve(x, mx.aux)

	param.reparameterize(pa.modi, mx.aux, pa.parameterization)

	pa.interp.interpolate(mx.aux, pa.mxm.x)
	param.reparameterize(pa.modm, pa.mxm.x, pa.parameterization)

	return pa.modm

def modi_to_x(pa, x, modi=None):
	""" preconditioned vector of a model on the inversion grid
	"""
	modi = pa.modi if modi is None else modi
	param.get(pa.mx.aux, modi, pa.parameterization)
	return pa.mprecon.apply(pa.mx.aux, x)

def F(pa, x=None, src=None, illum=False):
	""" forward modelling of x, or of the current modm when x is None;
	skipped when x equals the last vector bit for bit
	"""
	if x is not None:
		if isequal(x, pa.mx.last_x):
			return pa.dcal
		pa.mx.last_x[:] = x
		x_to_modm(pa, x)

	pa.modeling.forward(pa, src=src, illum=illum)
	return pa.dcal

def misfit(pa, residual=False):
	""" data misfit after the coupling filter, relative to the energy of
	the observed data; with residual, dres is
	the derivative w.r.t. the filtered data and dJx w.r.t. dcal
	"""
	pa.coupling.apply(pa.dcal, pa.dcalw)
	f = waveform(pa.dcalw, pa.dobs, pa.dres if residual else None, w=pa.dprecon,
		taper_frac=pa.taper_frac, norm_flag=True)
	if residual:
		pa.coupling.adjoint(pa.dres, pa.dJx)
	return f

def update_adjsrc(pa, d=None):
	""" adjoint sources are the time-reversed data residual
	"""
	d = pa.dJx if d is None else d
	for f, iss, dd in d:
		pa.adjsrc.wav[iss][:] = dd[::-1]
	return pa.adjsrc

def Fadj(pa):
	""" adjoint simulation, gradient w.r.t. (K, b) on the modelling grid
	"""
	return pa.modeling.adjoint(pa)

def spray_gradient(pa, gx):
	""" chain rule, adjoint of interpolation and preconditioning
	"""
	mod = pa.modeling.background(pa)
	param.chainrule(pa.mxm.gx, pa.gmodm, mod, pa.parameterization)
	pa.interp.spray(pa.mxm.gx, gx)
	pa.mprecon.solve(gx, gx)
	return gx

def visualize_gx(pa, gx):
	""" gradient vector as images on the inversion grid, one per selector
	"""
	nsel = param.count(pa.parameterization)
	return gx.reshape(nsel, pa.modi.nz, pa.modi.nx).copy()

def Fborn_x(pa, dx, d):
	""" linearized data d for a perturbation dx of the optimization vector,
	around the model used by the chain rule
	"""
	mx = pa.mx
	pa.mprecon.solve(dx, mx.aux)
	pa.interp.interpolate(mx.aux, pa.mxm.aux)
	mod = pa.modeling.background(pa)
	param.pert(pa.mxm.dm, pa.mxm.aux, mod, pa.parameterization)

	pa.modeling.born(pa, mod, pa.mxm.dm, pa.dcalw)
	pa.coupling.apply(pa.dcalw, d)

	# engine no longer holds the wavefields of last_x
	mx.reset_last()
	return d

def Fadj_x(pa, d, gx):
	""" adjoint of Fborn_x
	"""
	pa.coupling.adjoint(d, pa.dJx)
	update_adjsrc(pa)
	Fadj(pa)
	return spray_gradient(pa, gx)

def Fadj_Fborn_x(pa, x, gx):
	""" gx = Fadj_x(Fborn_x(x)), the normal operator
	"""
	d = pa.dcal.copy()
	Fborn_x(pa, x, d)
	return Fadj_x(pa, d, gx)
