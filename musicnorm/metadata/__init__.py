'''
Per-directory metadata documents that override music tags
'''


METADATA_FILENAME = '.metadata.json'
METADATA_ENCODING = 'utf-8'

DISABLE_NUMBERING = 'disable_track_numbers'

KNOWN_FIELDS = ('title', 'artist', 'album', 'track', 'disc')
DEFAULT_DISC = 1
