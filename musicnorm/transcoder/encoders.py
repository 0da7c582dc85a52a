'''
Workers that call external transcoding tools

Pipeline talks to the outside world only through a Toolkit object: one method
per kind of transformation. FFmpegToolkit is the real implementation, tests
substitute a fake one.
'''


import subprocess

from mutagen import MutagenError
from mutagen.easyid3 import EasyID3
from mutagen.id3 import APIC, ID3, ID3NoHeaderError
from PIL import Image
from pydub import AudioSegment
from pydub.exceptions import CouldntDecodeError, CouldntEncodeError

from musicnorm.errors import ExternalToolError
from musicnorm.transcoder import (
    COVER_DESCRIPTION,
    COVER_TYPE,
    DEFAULT_BITRATE,
    TARGET_FORMAT,
    WAVEFORM_FORMAT,
)


import logging
log = logging.getLogger(__name__)


EASYID3_KEYS = {
    # resolved metadata field: mutagen easy tag
    'track': 'tracknumber',
    'disc': 'discnumber',
}



class Toolkit:
    '''Generic base class for transcoding toolkits'''


    def to_waveform(self, source, destination):
        '''Convert compressed audio into lossless waveform'''
        raise NotImplementedError


    def analyze_loudness(self, source):
        '''
        Run loudness measurement over the file.

        Return diagnostic output as a list of lines.
        '''
        raise NotImplementedError


    def correct_loudness(self, source, destination, audio_filter):
        '''Apply loudness correction filter to the waveform'''
        raise NotImplementedError


    def encode(self, source, destination, bitrate=DEFAULT_BITRATE):
        '''Encode waveform into compressed target format'''
        raise NotImplementedError


    def extract_cover(self, source, destination):
        '''
        Copy embedded cover art into a separate image file.

        Return False if there is no embedded cover art.
        '''
        raise NotImplementedError


    def write_tags(self, filename, tags):
        '''Replace music tags in the file'''
        raise NotImplementedError


    def attach_cover(self, filename, image):
        '''Embed image file as the front cover'''
        raise NotImplementedError


    def __repr__(self):
        return '<{cls}()>'.format(cls=self.__class__.__name__)



def execute(command):
    '''
    Execute external command and capture its diagnostic output.

    Return the list of lines printed to stderr, raise ExternalToolError if
    the command fails.
    '''
    log.debug('Executing: {}'.format(' '.join(command)))
    try:
        process = subprocess.run(
            command,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except OSError as e:
        raise ExternalToolError(command, None, [str(e)]) from e
    diagnostics = process.stderr.decode('utf-8', errors='replace').splitlines()
    if process.returncode != 0:
        raise ExternalToolError(command, process.returncode, diagnostics)
    return diagnostics



class FFmpegToolkit(Toolkit):
    '''Toolkit that relies on ffmpeg (directly and via pydub) and mutagen'''


    def __init__(self, binary='ffmpeg'):
        self.binary = binary
        AudioSegment.converter = binary


    def __repr__(self):
        return '<{cls}({binary!r})>'.format(
            cls = self.__class__.__name__,
            binary = self.binary,
        )


    def ffmpeg(self, *args):
        return execute([self.binary, '-hide_banner', '-nostdin'] + list(args))


    def to_waveform(self, source, destination):
        try:
            AudioSegment \
                .from_file(source, TARGET_FORMAT) \
                .export(destination, format=WAVEFORM_FORMAT)
        except CouldntDecodeError as e:
            raise ExternalToolError(
                [self.binary, '-i', source, destination],
                None,
                str(e).splitlines(),
            ) from e


    def analyze_loudness(self, source):
        return self.ffmpeg(
            '-i', source,
            '-af', 'loudnorm=print_format=json',
            '-f', 'null',
            '-',
        )


    def correct_loudness(self, source, destination, audio_filter):
        self.ffmpeg(
            '-i', source,
            '-af', audio_filter,
            '-y', destination,
        )


    def encode(self, source, destination, bitrate=DEFAULT_BITRATE):
        try:
            AudioSegment \
                .from_file(source, WAVEFORM_FORMAT) \
                .export(
                    destination,
                    format=TARGET_FORMAT,
                    bitrate=bitrate,
                    parameters=['-vn'],
                )
        except (CouldntDecodeError, CouldntEncodeError) as e:
            raise ExternalToolError(
                [self.binary, '-i', source, '-b:a', bitrate, destination],
                None,
                str(e).splitlines(),
            ) from e


    def extract_cover(self, source, destination):
        try:
            pictures = load_tags(ID3, source).getall('APIC')
        except MutagenError as e:
            raise tag_error(source, e) from e
        if not pictures:
            return False
        self.ffmpeg(
            '-i', source,
            '-an',
            '-c:v', 'copy',
            '-f', 'image2',
            '-y', destination,
        )
        return True


    def write_tags(self, filename, tags):
        try:
            audio = load_tags(EasyID3, filename)
            for key, value in tags.items():
                key = EASYID3_KEYS.get(key, key).lower()
                if key not in EasyID3.Get:
                    EasyID3.RegisterTXXXKey(key, key)
                audio[key] = text_value(value)
            audio.save(filename)
        except MutagenError as e:
            raise tag_error(filename, e) from e


    def attach_cover(self, filename, image):
        with Image.open(image) as picture:
            mime = Image.MIME.get(picture.format, 'image/jpeg')
        with open(image, 'rb') as f:
            data = f.read()
        try:
            tags = load_tags(ID3, filename)
            tags.delall('APIC')
            tags.add(APIC(
                encoding=3,
                mime=mime,
                type=COVER_TYPE,
                desc=COVER_DESCRIPTION,
                data=data,
            ))
            tags.save(filename)
        except MutagenError as e:
            raise tag_error(filename, e) from e



def load_tags(tag_class, filename):
    '''Read ID3 tags from the file, start with empty ones if there are none'''
    try:
        return tag_class(filename)
    except ID3NoHeaderError:
        return tag_class()



def tag_error(filename, error):
    '''Report unreadable or unwritable tags like any other failed tool'''
    return ExternalToolError(['mutagen', filename], None, str(error).splitlines())




def text_value(value):
    '''Convert tag value into a list of strings accepted by mutagen'''
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return [str(value)]
