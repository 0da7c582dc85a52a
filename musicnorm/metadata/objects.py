'''
Metadata objects: directory documents and resolved tag sets for music files
'''


import json
import os
import pkgutil
from collections import OrderedDict

import jsonschema

from musicnorm.errors import MetadataParseError
from musicnorm.metadata import (
    DISABLE_NUMBERING,
    KNOWN_FIELDS,
    METADATA_ENCODING,
    METADATA_FILENAME,
)
from musicnorm.util import probe


import logging
log = logging.getLogger(__name__)



class TagSet:
    '''
    Known music tags plus arbitrary passthrough tags

    None means "not set" for every field, so that merging can tell an unset
    field from an empty one.
    '''

    def __init__(self, title=None, artist=None, album=None, track=None,
                 disc=None, disable_numbering=None, extra=None):
        self.title = title
        self.artist = artist
        self.album = album
        self.track = track
        self.disc = disc
        self.disable_numbering = disable_numbering
        self.extra = OrderedDict(extra or ())


    @classmethod
    def from_mapping(cls, mapping):
        '''Split a flat key/value mapping into known fields and passthrough tags'''
        known = {}
        extra = OrderedDict()
        for key, value in mapping.items():
            if key in KNOWN_FIELDS:
                known[key] = value
            elif key == DISABLE_NUMBERING:
                known['disable_numbering'] = value
            else:
                extra[key] = value
        return cls(extra=extra, **known)


    def merge(self, other):
        '''Return new tag set with values from other overriding ours'''
        result = self.copy()
        for field in KNOWN_FIELDS + ('disable_numbering',):
            value = getattr(other, field)
            if value is not None:
                setattr(result, field, value)
        result.extra.update(other.extra)
        return result


    def copy(self):
        result = self.__class__.__new__(self.__class__)
        result.__dict__.update(self.__dict__)
        result.extra = OrderedDict(self.extra)
        return result


    @property
    def numbering_enabled(self):
        return not self.disable_numbering


    def as_dict(self):
        '''All tags that are set, control keys excluded'''
        result = OrderedDict()
        for field in KNOWN_FIELDS:
            value = getattr(self, field)
            if value is not None:
                result[field] = value
        for key, value in self.extra.items():
            if value is not None:
                result[key] = value
        return result


    def __eq__(self, other):
        if not isinstance(other, TagSet):
            return NotImplemented
        return self.as_dict() == other.as_dict() \
           and bool(self.disable_numbering) == bool(other.disable_numbering)


    def __repr__(self):
        return '{cls}({tags!r})'.format(
            cls = self.__class__.__name__,
            tags = dict(self.as_dict()),
        )



class MetadataDocument:
    '''Metadata overrides stored in a single directory'''

    schema = None


    def __init__(self, filename, tags, mtime):
        self.filename = filename
        self.tags = tags
        self.mtime = mtime


    def __repr__(self):
        return '{cls}({filename!r})'.format(
            cls = self.__class__.__name__,
            filename = self.filename,
        )


    @classmethod
    def load(cls, directory, name=METADATA_FILENAME):
        '''
        Read metadata document from the directory.

        Return None if there is no document.
        '''
        filename = os.path.join(directory, name)
        mtime = probe(filename).mtime
        if mtime is None:
            return None
        try:
            with open(filename, encoding=METADATA_ENCODING) as f:
                raw = f.read()
        except FileNotFoundError:
            return None  # removed after we have probed it
        except UnicodeDecodeError as e:
            raise MetadataParseError(str(e), filename) from e
        data = cls.parse(raw, filename)
        log.debug('Read metadata from {}'.format(filename))
        return cls(filename, TagSet.from_mapping(data), mtime)


    @classmethod
    def parse(cls, raw, filename):
        '''Parse and validate JSON contents of the metadata document'''
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw, object_pairs_hook=OrderedDict)
        except ValueError as e:
            raise MetadataParseError(str(e), filename) from e
        try:
            jsonschema.validate(data, cls.get_schema())
        except jsonschema.ValidationError as e:
            raise MetadataParseError(e.message, filename) from e
        return data


    @classmethod
    def get_schema(cls):
        if cls.schema is None:
            package = __name__.rsplit('.', 1)[0]
            cls.schema = json.loads(pkgutil.get_data(package, 'schema.json').decode())
        return cls.schema



class ResolvedMetadata(TagSet):
    '''
    Tags merged from all metadata documents above a music file

    Watermark is the latest modification time among the documents that were
    read (None if there were none).
    '''

    def __init__(self, *a, watermark=None, sources=(), **ka):
        super().__init__(*a, **ka)
        self.watermark = watermark
        self.sources = list(sources)


    def add(self, document):
        '''Apply document on top of the tags collected so far'''
        merged = self.merge(document.tags)
        merged.sources = self.sources + [document.filename]
        if self.watermark is None or document.mtime > self.watermark:
            merged.watermark = document.mtime
        return merged



class MetadataResolver:
    '''Collect metadata documents from the library root down to the music file'''

    def __init__(self, boundary=None, filename=METADATA_FILENAME):
        if boundary is None:
            boundary = os.getcwd()
        self.boundary = os.path.abspath(boundary)
        self.filename = filename


    def __repr__(self):
        return '{cls}({boundary!r})'.format(
            cls = self.__class__.__name__,
            boundary = self.boundary,
        )


    def directories(self, track):
        '''
        Directories to read metadata from, outermost first.

        The walk goes up from the directory of the track and stops at the
        library boundary or at the filesystem root.
        '''
        directory = os.path.dirname(os.path.abspath(track))
        chain = [directory]
        while directory != self.boundary:
            parent = os.path.dirname(directory)
            if parent == directory:
                break
            directory = parent
            chain.append(directory)
        chain.reverse()
        return chain


    def resolve(self, track):
        '''Merge metadata documents that apply to the track'''
        resolved = ResolvedMetadata()
        for directory in self.directories(track):
            document = MetadataDocument.load(directory, self.filename)
            if document is not None:
                resolved = resolved.add(document)
        log.debug('Resolved metadata for {}: {!r} (watermark={})'.format(
            track, resolved, resolved.watermark
        ))
        return resolved
