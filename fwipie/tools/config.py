from os import path, getcwd, makedirs
from argparse import ArgumentParser
from configparser import ConfigParser

from fwipie.tools.errors import ConfigurationError

def read_config(workdir, config_file, mode=None):
	""" config.ini of a run, paths resolved against workdir
	"""
	filename = path.join(workdir, config_file)
	assert path.exists(filename), filename

	config = ConfigParser()
	config.read(filename)

	if mode is not None:
		if not config.has_section('workflow'):
			config.add_section('workflow')
		config['workflow']['mode'] = mode
	if not config.has_option('workflow', 'mode'):
		raise ConfigurationError('%s: missing [workflow] mode' % filename)

	if not config.has_section('path'):
		config.add_section('path')
	config['path']['workdir'] = workdir

	# outputs of every workflow go to one directory
	outdir = path.join(workdir, config['path'].get('output', 'output'))
	config['path']['output'] = outdir
	if not path.exists(outdir):
		print('created directory', outdir)
		makedirs(outdir)

	return config

def get_config(argv=None):
	parser = ArgumentParser(prog='fwipie')
	parser.add_argument('--workdir', nargs='?', default=getcwd())
	parser.add_argument('--config_file', nargs='?', default='config.ini')
	parser.add_argument('--mode', help='overrides [workflow] mode')
	args = parser.parse_args(argv)

	return read_config(args.workdir, args.config_file, args.mode)

def get_list(section, key, default=''):
	""" comma separated entry
	"""
	value = section.get(key, default)
	return [v.strip() for v in value.split(',') if v.strip()]

def get_flag(section, key, default='no'):
	return section.get(key, default).strip().lower() in ('yes', 'true', '1')
