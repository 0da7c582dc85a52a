'''
Utilities for internal use: file probing, staleness checks, safe writes
'''


import errno
import os
import time
from collections import namedtuple
from contextlib import contextmanager

import musicnorm
from musicnorm.errors import FileSystemError, NotAnAudioFile



class SpecialValue:
    '''Dummy objects that are always compared via "is-a" instead of "equals"'''
    __slots__ = ()


PRESENT = SpecialValue()
ABSENT = SpecialValue()
FAULT = SpecialValue()

ABSENT_ERRNO = {errno.ENOENT, errno.ENOTDIR}



class Probe(namedtuple('Probe', 'path state stat error')):
    '''
    Result of looking up a file: PRESENT (with stat), ABSENT or FAULT (with
    the OSError that was encountered)
    '''
    __slots__ = ()


    @property
    def exists(self):
        return self.state is PRESENT


    @property
    def mtime(self):
        '''Modification time, None for missing files, raise for other faults'''
        if self.state is PRESENT:
            return self.stat.st_mtime
        elif self.state is ABSENT:
            return None
        raise FileSystemError(
            'Can not access {}: {}'.format(self.path, self.error)
        ) from self.error



def probe(path):
    '''Look up a file without conflating "does not exist" with other faults'''
    try:
        return Probe(path, PRESENT, os.stat(path), None)
    except OSError as error:
        if error.errno in ABSENT_ERRNO:
            return Probe(path, ABSENT, None, None)
        return Probe(path, FAULT, None, error)



def mtime(filename):
    '''
    Get modification time of file (unix timestamp).
    Return None if file does not exist.
    '''
    return probe(filename).mtime



def exists(filename):
    '''Check if file exists, raise FileSystemError on any other fault'''
    return mtime(filename) is not None



def is_stale(candidate, reference=None):
    '''
    Detect whether candidate file has to be regenerated.

    Reference may be another file path or a timestamp. Candidate is stale when
    it does not exist or when it is strictly older than the reference. Missing
    reference (None or absent file) makes only existence matter.
    '''
    candidate_mtime = mtime(candidate)
    if candidate_mtime is None:
        return True
    if isinstance(reference, (str, bytes, os.PathLike)):
        reference = mtime(reference)
    if reference is None:
        return False
    return candidate_mtime < reference



def touch(filename, not_before=None):
    '''Set modification time to now (or to not_before if it is later)'''
    timestamp = time.time()
    if not_before is not None and not_before > timestamp:
        timestamp = not_before
    os.utime(filename, (timestamp, timestamp))
    return timestamp



def temporary_path(filename, directory=None):
    '''Name of the temporary file used for atomic replacement of filename'''
    base, extension = os.path.splitext(os.path.basename(filename))
    if directory is None:
        directory = os.path.dirname(filename)
    return os.path.join(directory, '{}.tmp{}'.format(base, extension))



@contextmanager
def atomic_output(filename, directory=None):
    '''
    Yield temporary path to write to, rename it over filename on success.

    Temporary file is removed if the block raises. Directory for the temporary
    file must be on the same filesystem as the target.
    '''
    temporary = temporary_path(filename, directory)
    make_target_directory(temporary)
    try:
        yield temporary
        os.replace(temporary, filename)
    except BaseException:
        if exists(temporary):
            os.remove(temporary)
        raise



def make_target_directory(output_filename):
    '''Make sure that directory for this file exists'''
    target = os.path.dirname(output_filename)
    os.makedirs(target, exist_ok=True)



def is_music(filename):
    '''Check if file is a supported audio file'''
    extension = os.path.splitext(filename)[1][1:].lower()
    return extension in musicnorm.AUDIO_EXTENSIONS



def check_music(filename):
    '''Return absolute path to audio file or raise NotAnAudioFile'''
    if not is_music(filename):
        raise NotAnAudioFile(
            'Not an audio file (expected {}): {}'.format(
                ', '.join('.' + e for e in sorted(musicnorm.AUDIO_EXTENSIONS)),
                filename,
            ),
            track=filename,
        )
    return os.path.abspath(filename)
