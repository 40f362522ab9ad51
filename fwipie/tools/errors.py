class ConfigurationError(ValueError):
	""" invalid session setup, raised at construction
	"""
	pass


class MissingDataError(ValueError):
	""" observed or calculated data needed but absent
	"""
	pass


class SequencingError(RuntimeError):
	""" adjoint simulation without a valid forward buffer
	"""
	pass
