'''
Fill music tags and cover art of normalized files
'''


import os
from shutil import copyfile

from musicnorm.metadata import DEFAULT_DISC
from musicnorm.util import atomic_output, is_music


import logging
log = logging.getLogger(__name__)



def track_position(music_file):
    '''
    Position of the music file among its siblings sorted by file name.

    Return (position, total), position is 1-based.
    '''
    directory, filename = os.path.split(music_file)
    siblings = sorted(
        f for f in os.listdir(directory)
        if is_music(f) and os.path.isfile(os.path.join(directory, f))
    )
    return siblings.index(filename) + 1, len(siblings)



class TagWriter:
    '''
    Write tags to normalized music files.

    Source file is never modified: tags are written to a copy which then
    replaces the destination file.
    '''

    def __init__(self, toolkit):
        self.toolkit = toolkit


    def __repr__(self):
        return '<{cls}({toolkit!r})>'.format(
            cls = self.__class__.__name__,
            toolkit = self.toolkit,
        )


    def complete(self, music_file, metadata):
        '''Add tags that are calculated from the music file itself'''
        result = metadata.copy()
        result.title = os.path.splitext(os.path.basename(music_file))[0]
        if metadata.numbering_enabled:
            result.track = '{}/{}'.format(*track_position(music_file))
        else:
            result.track = None
        if result.disc is None:
            result.disc = DEFAULT_DISC
        return result


    def write(self, music_file, source, destination, metadata, cover=None):
        '''
        Copy source to destination with tags for music_file (and cover art,
        if given)
        '''
        tags = self.complete(music_file, metadata).as_dict()
        with atomic_output(destination) as temporary:
            copyfile(source, temporary)
            self.toolkit.write_tags(temporary, tags)
        log.debug('Tagged {}: {!r}'.format(destination, dict(tags)))

        if cover is not None:
            with atomic_output(destination) as temporary:
                copyfile(destination, temporary)
                self.toolkit.attach_cover(temporary, cover)
            log.debug('Attached {} to {}'.format(cover, destination))
        return destination
