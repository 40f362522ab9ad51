import numpy as np

def ricker(t, f0, t0, amp=1.0):
	a = (np.pi * f0 * (t - t0)) ** 2
	return amp * (1.0 - 2.0 * a) * np.exp(-a)
