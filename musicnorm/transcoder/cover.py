'''
Handle cover art
'''

import os
import re

from PIL import Image

from musicnorm.transcoder import COVER_FORMAT
from musicnorm.util import (
    atomic_output,
    exists,
    make_target_directory,
    temporary_path,
)


import logging
log = logging.getLogger(__name__)



COVER_KEYWORDS = ['cover', 'folder', 'front', 'thumb', 'thumbnail']  # order matters
COVER_EXT = ['jpg', 'jpeg', 'tiff', 'tif', 'png', 'gif']
COVER_TEMPLATE = r'.*{keyword}\.({extensions})$'
COVER_REGEX = [
    re.compile(
        COVER_TEMPLATE.format(keyword=k, extensions='|'.join(COVER_EXT)),
        re.IGNORECASE
    ) for k in COVER_KEYWORDS
]



def locate_coverart(music_file):
    '''
    Find cover art image for a music file in its folder (or the parent folder
    for multi-disc albums)

    Return file path or None if nothing is found
    '''
    directory = os.path.dirname(music_file)
    subdirs = ['.', '..']  # order matters

    # Search for valid cover filenames in relevant subdirs
    files = {}
    for subdir in subdirs:
        try:
            files[subdir] = sorted(os.listdir(os.path.join(directory, subdir)))
        except (FileNotFoundError, NotADirectoryError):
            continue
        for regex in COVER_REGEX:
            for filename in files[subdir]:
                if regex.match(filename):
                    return os.path.normpath(os.path.join(directory, subdir, filename))

    # Fallback: use any image from the folder of the music file
    extensions = set('.{}'.format(e) for e in COVER_EXT)
    images = [
        f for f in files.get('.', ())
        if os.path.splitext(f)[1].lower() in extensions
    ]
    if images:
        return os.path.join(directory, images[0])



def resize_coverart(source, destination, size):
    '''Save a downscaled JPEG copy of the image'''
    with Image.open(source) as image:
        image = image.convert('RGB')
        image.thumbnail((size, size))
        image.save(destination, format=COVER_FORMAT)



def refresh_coverart(toolkit, music_file, destination, size=None):
    '''
    Produce cover art image for the music file.

    Embedded cover art takes precedence, an image from the music folder is
    used otherwise (unless size is None). Return path to the image or None if
    there is no cover art at all.
    '''
    temporary = temporary_path(destination)
    make_target_directory(temporary)
    try:
        extracted = toolkit.extract_cover(music_file, temporary)
    except BaseException:
        if exists(temporary):
            os.remove(temporary)
        raise
    if extracted:
        os.replace(temporary, destination)
        log.debug('Extracted embedded cover art from {}'.format(music_file))
        return destination

    image = locate_coverart(music_file) if size else None
    if image:
        with atomic_output(destination) as temporary:
            resize_coverart(image, temporary, size)
        log.debug('Using {} as cover art for {}'.format(image, music_file))
        return destination

    if exists(destination):  # left from the previous version of the music file
        os.remove(destination)
    return None
