'''
Two-pass loudness normalization

Pass 1 measures loudness of the waveform with the loudnorm filter, pass 2
applies the filter again in linear mode using the measured values instead of
measuring on the fly. The result is then encoded into the target format.
'''


import json
from collections import namedtuple
from shutil import copyfile

from musicnorm.errors import ExternalToolError
from musicnorm.transcoder import DEFAULT_BITRATE, LOUDNORM_MARKER
from musicnorm.util import atomic_output


import logging
log = logging.getLogger(__name__)



class LoudnessStats(namedtuple('LoudnessStats', 'input_i input_lra input_tp input_thresh')):
    '''Loudness statistics measured in the first pass'''
    __slots__ = ()

    FILTER_PARAMETERS = (
        # filter option, statistics field
        ('measured_I', 'input_i'),
        ('measured_LRA', 'input_lra'),
        ('measured_TP', 'input_tp'),
        ('measured_thresh', 'input_thresh'),
    )


    @classmethod
    def from_json(cls, data):
        try:
            return cls(**{field: str(data[field]) for field in cls._fields})
        except (KeyError, TypeError) as e:
            raise ValueError('incomplete loudness statistics: {!r}'.format(data)) from e


    def as_filter(self):
        '''Loudness correction filter that reuses measured values'''
        options = [('linear', 'true')]
        options.extend(
            (option, getattr(self, field))
            for option, field in self.FILTER_PARAMETERS
        )
        return 'loudnorm=' + ':'.join('{}={}'.format(k, v) for k, v in options)



def parse_loudnorm(lines, marker=LOUDNORM_MARKER):
    '''
    Extract loudness statistics from diagnostic output of the first pass.

    Everything up to and including the marker line is ignored, the rest is
    expected to contain a JSON object.
    '''
    collected = None
    for line in lines:
        if collected is not None:
            collected.append(line)
        elif marker in line:
            collected = []
    if collected is None:
        raise ValueError('marker {!r} not found'.format(marker))

    text = '\n'.join(collected)
    start = text.find('{')
    if start < 0:
        raise ValueError('no statistics after marker {!r}'.format(marker))
    data, _ = json.JSONDecoder().raw_decode(text[start:])
    return LoudnessStats.from_json(data)



class NormalizationEngine:
    '''Produce normalized versions of music files via the toolkit'''

    def __init__(self, toolkit, bitrate=DEFAULT_BITRATE):
        self.toolkit = toolkit
        self.bitrate = bitrate


    def __repr__(self):
        return '<{cls}({toolkit!r}, bitrate={bitrate!r})>'.format(
            cls = self.__class__.__name__,
            toolkit = self.toolkit,
            bitrate = self.bitrate,
        )


    def backup(self, source, destination):
        '''Snapshot original bytes of the music file'''
        with atomic_output(destination) as temporary:
            copyfile(source, temporary)


    def waveform(self, source, destination):
        '''Decode music file into lossless intermediate waveform'''
        with atomic_output(destination) as temporary:
            self.toolkit.to_waveform(source, temporary)


    def analyze(self, waveform):
        '''Pass 1: measure loudness without modifying anything'''
        diagnostics = self.toolkit.analyze_loudness(waveform)
        try:
            stats = parse_loudnorm(diagnostics)
        except ValueError as e:
            raise ExternalToolError(
                ['loudnorm', waveform],
                None,
                ['Unable to parse loudness statistics: {}'.format(e)] + list(diagnostics),
            ) from e
        log.debug('Measured loudness of {}: {!r}'.format(waveform, stats))
        return stats


    def correct(self, waveform, destination, stats):
        '''Pass 2: apply linear correction using measured values'''
        with atomic_output(destination) as temporary:
            self.toolkit.correct_loudness(waveform, temporary, stats.as_filter())


    def normalize(self, waveform, destination):
        '''Run both passes'''
        stats = self.analyze(waveform)
        self.correct(waveform, destination, stats)
        return stats


    def encode(self, waveform, destination):
        '''Compress normalized waveform into the target format'''
        with atomic_output(destination) as temporary:
            self.toolkit.encode(waveform, temporary, self.bitrate)
