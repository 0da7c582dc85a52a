'''
CLI application for normalizing and tagging music files
'''


import logging
import sys
from argparse import ArgumentParser

from jsonschema import ValidationError
from ruamel.yaml.error import YAMLError

from musicnorm.config import load_config
from musicnorm.errors import PipelineError
from musicnorm.transcoder.pipeline import NormalizationJob


log = logging.getLogger(__name__)



def run(*a, **ka):
    '''
    CLI entry point
    '''
    args = parse_args(*a, **ka)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(levelname)s: %(message)s',
    )
    try:
        config = load_config(args.config)
    except ValidationError as e:
        log.error('Invalid configuration in {}: {}'.format(args.config, e.message))
        sys.exit(1)
    except (YAMLError, OSError) as e:
        log.error('Unable to read configuration from {}: {}'.format(args.config, e))
        sys.exit(1)
    if args.library:
        config['library'] = args.library
    job = NormalizationJob(config)
    try:
        job.run(args.files)
    except PipelineError as e:
        log.error(str(e))
        sys.exit(1)



def parse_args(*a, prog=None, **ka):
    parser = ArgumentParser(
        description='Normalize loudness and fill tags of music files',
        prog=prog,
    )
    parser.add_argument(
        'files',
        metavar='FILE',
        nargs='+',
        help='Music files to process (in the given order)',
    )
    parser.add_argument(
        '--config',
        default=None,
        help='Path to YAML description of the job',
    )
    parser.add_argument(
        '--library',
        default=None,
        help='Top level directory of the music library (default: current directory)',
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        default=False,
        help='Show debug output',
    )
    return parser.parse_args(*a, **ka)
