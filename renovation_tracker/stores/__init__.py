# renovation_tracker/stores/__init__.py
from importlib import import_module


def get_store(config):
    """Instantiate the store backend named in ``config['store']['backend']``."""
    store_cfg = config['store']
    path = config['store_backends'][store_cfg['backend']]
    module_name, cls_name = path.rsplit('.', 1)
    mod = import_module(module_name)
    return getattr(mod, cls_name)(store_cfg.get('path'))
