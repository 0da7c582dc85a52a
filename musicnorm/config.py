'''
Load and validate configuration of the normalization job
'''


import json
import os
import pkgutil

import jsonschema
from ruamel.yaml import YAML

from musicnorm import CONFIG_ENCODING, DEFAULT_CONFIG


import logging
log = logging.getLogger(__name__)


_schema = None



def load_config(config_file=None):
    '''
    Read YAML job description and merge it over default values.

    Relative library path is interpreted relative to the config file.
    '''
    config = dict(DEFAULT_CONFIG)
    if config_file is None:
        return config

    with open(config_file, encoding=CONFIG_ENCODING) as f:
        loaded = YAML(typ='safe').load(f) or {}
    validate(loaded)
    config.update(loaded)

    if config['library'] is not None:
        config['library'] = os.path.join(
            os.path.dirname(os.path.abspath(config_file)),
            os.path.expanduser(config['library']),
        )
    log.debug('Loaded configuration from {}: {!r}'.format(config_file, config))
    return config



def validate(config):
    global _schema
    if _schema is None:
        package = __name__.rsplit('.', 1)[0]
        _schema = json.loads(pkgutil.get_data(package, 'schema.json').decode())
    return jsonschema.validate(config, _schema)
