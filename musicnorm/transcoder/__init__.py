'''
Normalize loudness of music files and fill their tags
'''


TARGET_FORMAT = 'mp3'
WAVEFORM_FORMAT = 'wav'
DEFAULT_BITRATE = '192k'

LOUDNORM_MARKER = 'Parsed_loudnorm_'

COVER_DESCRIPTION = 'Album cover'
COVER_TYPE = 3  # Cover (front)
COVER_FORMAT = 'jpeg'
