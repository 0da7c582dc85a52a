'''
Keep a personal music library normalized and tagged
'''


AUDIO_EXTENSIONS = {'mp3'}

CACHE_DIRECTORY = '.musicnorm'


DEFAULT_CONFIG = {
    'library': None,  # current working directory
    'ffmpeg': 'ffmpeg',
    'bitrate': '192k',
    'cover': 500,
}
CONFIG_ENCODING = 'utf-8'
