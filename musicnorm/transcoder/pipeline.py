'''
Incremental pipeline that keeps music files normalized and tagged

Each music file goes through a fixed chain of derived files stored in the
cache directory next to it:

    source -> backup (created once)
    source -> waveform -> normalized waveform -> normalized track -> tagged

Only the stale parts of the chain are regenerated. When anything changes, the
tagged file replaces the source file.
'''


import os
from contextlib import contextmanager
from shutil import copyfile

from musicnorm import DEFAULT_CONFIG
from musicnorm.errors import FileSystemError, PipelineError
from musicnorm.metadata.objects import MetadataResolver
from musicnorm.transcoder.cache import TrackArtifacts
from musicnorm.transcoder.cover import refresh_coverart
from musicnorm.transcoder.encoders import FFmpegToolkit
from musicnorm.transcoder.loudness import NormalizationEngine
from musicnorm.transcoder.progress import PipelineStats
from musicnorm.transcoder.tagging import TagWriter
from musicnorm.util import (
    atomic_output,
    check_music,
    exists,
    is_stale,
    mtime,
    touch,
)


import logging
log = logging.getLogger(__name__)



class Track:
    '''Music file under management'''

    def __init__(self, filename):
        self.source = check_music(filename)
        self.source_dir = os.path.dirname(self.source)
        self.artifacts = TrackArtifacts(self.source)


    def __repr__(self):
        return '{cls}({filename!r})'.format(
            cls = self.__class__.__name__,
            filename = self.source,
        )



@contextmanager
def stage(track, name):
    '''Attach track path and stage name to errors raised within the block'''
    log.debug('{}: {}'.format(track, name))
    try:
        yield
    except PipelineError as e:
        if e.track is None:
            e.track = track.source
        if e.stage is None:
            e.stage = name
        raise
    except OSError as e:
        raise FileSystemError(str(e), track=track.source, stage=name) from e



class NormalizationJob:
    '''Store essential parameters of the pipeline and process music files'''

    def __init__(self, config=None, toolkit=None):
        settings = dict(DEFAULT_CONFIG)
        settings.update(config or {})
        if toolkit is None:
            toolkit = FFmpegToolkit(settings['ffmpeg'])
        self.config = settings
        self.toolkit = toolkit
        self.engine = NormalizationEngine(toolkit, settings['bitrate'])
        self.resolver = MetadataResolver(settings['library'])
        self.writer = TagWriter(toolkit)
        self.cover_size = settings['cover']
        self.stats = PipelineStats()
        log.debug('Initialized {!r}'.format(self))


    def __repr__(self):
        return '<{cls}({toolkit!r}, library={library!r})>'.format(
            cls = self.__class__.__name__,
            toolkit = self.toolkit,
            library = self.resolver.boundary,
        )


    def run(self, filenames):
        '''
        Process music files one by one, in the given order.

        The first error stops the whole run.
        '''
        tracks = [Track(filename) for filename in filenames]
        for track in tracks:
            self.process(track)
        log.info(self.stats.show())
        return self.stats


    def process(self, track):
        '''
        Bring derived files of a single music file up to date.

        Return True if the music file was replaced with the updated version.
        '''
        files = track.artifacts
        updated = False        # any new file was produced
        audio_changed = False  # audio stages were executed

        with stage(track, 'backup'):
            if not exists(files.backup):
                self.engine.backup(track.source, files.backup)
                updated = True

        with stage(track, 'waveform'):
            # tagged file gets a fresh mtime every time it replaces the source,
            # before the first promotion the waveform is the newest file taken
            # from the source; a newer source means it was changed by user
            reference = files.tagged if exists(files.tagged) else files.waveform
            if is_stale(reference, track.source):
                self.engine.waveform(track.source, files.waveform)
                audio_changed = True

        with stage(track, 'cover'):
            audio_stale = audio_changed \
                or is_stale(files.normalized_waveform, files.waveform) \
                or is_stale(files.normalized_track, files.normalized_waveform)
            if audio_changed \
            or (audio_stale and is_stale(files.cover, files.waveform)):
                refresh_coverart(self.toolkit, track.source, files.cover, self.cover_size)

        with stage(track, 'normalize'):
            if audio_changed or is_stale(files.normalized_waveform, files.waveform):
                self.engine.normalize(files.waveform, files.normalized_waveform)
                audio_changed = True

        with stage(track, 'encode'):
            if audio_changed or is_stale(files.normalized_track, files.normalized_waveform):
                self.engine.encode(files.normalized_waveform, files.normalized_track)
                audio_changed = True

        with stage(track, 'metadata'):
            metadata = self.resolver.resolve(track.source)

        with stage(track, 'tag'):
            if audio_changed \
            or is_stale(files.tagged, files.normalized_track) \
            or is_stale(files.tagged, metadata.watermark):
                cover = files.cover if exists(files.cover) else None
                self.writer.write(
                    track.source,
                    files.normalized_track,
                    files.tagged,
                    metadata,
                    cover=cover,
                )
                updated = True

        if not (updated or audio_changed):
            self.stats.record_skip()
            log.debug('Up to date: {}'.format(track.source))
            return False

        with stage(track, 'promote'):
            self.promote(track)
        self.stats.record_done()
        log.info('Updated {}'.format(track.source))
        return True


    def promote(self, track):
        '''Replace source file with the tagged one'''
        files = track.artifacts
        with atomic_output(track.source, directory=files.directory) as temporary:
            copyfile(files.tagged, temporary)
        touch(files.tagged, not_before=mtime(track.source))
