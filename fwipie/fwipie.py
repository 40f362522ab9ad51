from importlib import import_module
from time import time

from fwipie.tools.config import get_config, get_list

def import_object(section, name):
	module = import_module('fwipie.%s.%s' % (section, name))
	return getattr(module, name)()

def setup(config):
	""" build the workflow named in [workflow] mode with the components
	it lists, then run it
	"""
	start = time()
	workflow = import_object('workflow', config['workflow']['mode'])

	for section in workflow.modules:
		setattr(workflow, section, import_object(section, config[section]['method']))

	if 'optimize' in workflow.modules:
		workflow.optimize.configure(config['optimize'])

	if 'objective' in workflow.modules and 'alpha' in config['objective']:
		workflow.objective.alpha = [float(a) for a in get_list(config['objective'], 'alpha')]

	workflow.setup(config)
	workflow.run()
	print('%s finished in %.2fs' % (config['workflow']['mode'], time() - start))

def main(argv=None):
	setup(get_config(argv))

if __name__ == '__main__':
	main()
