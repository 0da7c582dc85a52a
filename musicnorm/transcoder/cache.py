'''
Layout of the per-directory cache of derived files
'''


import os
from collections import OrderedDict

from musicnorm import CACHE_DIRECTORY


ARTIFACTS = OrderedDict((
    # artifact kind: file name suffix
    ('backup', '.backup.mp3'),
    ('waveform', '.wav'),
    ('normalized_waveform', '.normalized.wav'),
    ('normalized_track', '.normalized.mp3'),
    ('tagged', '.tagged.mp3'),
    ('cover', '.cover.jpg'),
))



class TrackArtifacts:
    '''
    Paths of all files derived from a single music file

    Names are built from the file name stem, so the same music file always
    maps to the same cache entries.
    '''

    def __init__(self, source, cache_directory=CACHE_DIRECTORY):
        self.source = source
        self.directory = os.path.join(os.path.dirname(source), cache_directory)
        self.stem = os.path.splitext(os.path.basename(source))[0]
        for kind, suffix in ARTIFACTS.items():
            setattr(self, kind, os.path.join(self.directory, self.stem + suffix))


    def __repr__(self):
        return '{cls}({source!r})'.format(
            cls = self.__class__.__name__,
            source = self.source,
        )


    def __iter__(self):
        '''Iterate over (kind, path) pairs in the order of production'''
        for kind in ARTIFACTS:
            yield kind, getattr(self, kind)
