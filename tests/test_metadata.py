'''
Unit tests for directory metadata resolution
'''


import json
import os
from tempfile import TemporaryDirectory
from unittest import TestCase

from musicnorm.errors import MetadataParseError
from musicnorm.metadata import METADATA_FILENAME
from musicnorm.metadata.objects import (
    MetadataDocument,
    MetadataResolver,
    TagSet,
)



def write_metadata(directory, data, mtime=None):
    os.makedirs(directory, exist_ok=True)
    filename = os.path.join(directory, METADATA_FILENAME)
    with open(filename, 'w') as f:
        if isinstance(data, str):
            f.write(data)
        else:
            json.dump(data, f)
    if mtime is not None:
        os.utime(filename, (mtime, mtime))
    return filename



class ResolverTests(TestCase):
    def setUp(self):
        self.tmp = TemporaryDirectory()
        self.root = os.path.realpath(self.tmp.name)
        self.artist = os.path.join(self.root, 'Artist')
        self.album = os.path.join(self.artist, 'Album')
        os.makedirs(self.album)
        self.track = os.path.join(self.album, '01 Song.mp3')
        self.resolver = MetadataResolver(self.root)


    def tearDown(self):
        self.tmp.cleanup()


    def test_directories(self):
        self.assertEqual(
            self.resolver.directories(self.track),
            [self.root, self.artist, self.album],
        )


    def test_directories_outside_boundary(self):
        resolver = MetadataResolver(self.album)
        self.assertEqual(resolver.directories(self.track), [self.album])
        chain = MetadataResolver(os.path.join(self.root, 'elsewhere')).directories(self.track)
        self.assertEqual(chain[0], os.path.dirname(chain[0]))  # filesystem root
        self.assertEqual(chain[-1], self.album)


    def test_no_documents(self):
        resolved = self.resolver.resolve(self.track)
        self.assertEqual(resolved.as_dict(), {})
        self.assertIsNone(resolved.watermark)
        self.assertEqual(resolved.sources, [])


    def test_override(self):
        write_metadata(self.root, {'artist': 'Root', 'genre': 'Rock'}, mtime=1000)
        write_metadata(self.album, {'artist': 'Leaf', 'album': 'B'}, mtime=500)
        resolved = self.resolver.resolve(self.track)
        self.assertEqual(resolved.as_dict(), {
            'artist': 'Leaf',
            'album': 'B',
            'genre': 'Rock',
        })
        self.assertEqual(resolved.watermark, 1000)
        self.assertEqual(len(resolved.sources), 2)


    def test_watermark(self):
        write_metadata(self.root, {'artist': 'A'}, mtime=1000)
        write_metadata(self.artist, {}, mtime=3000)
        write_metadata(self.album, {'album': 'B'}, mtime=2000)
        self.assertEqual(self.resolver.resolve(self.track).watermark, 3000)


    def test_boundary(self):
        write_metadata(self.root, {'artist': 'Outside'}, mtime=5000)
        write_metadata(self.artist, {'album': 'Inside'}, mtime=1000)
        resolved = MetadataResolver(self.artist).resolve(self.track)
        self.assertEqual(resolved.as_dict(), {'album': 'Inside'})
        self.assertEqual(resolved.watermark, 1000)


    def test_empty_document(self):
        write_metadata(self.album, '', mtime=1000)
        resolved = self.resolver.resolve(self.track)
        self.assertEqual(resolved.as_dict(), {})
        self.assertEqual(resolved.watermark, 1000)


    def test_disable_numbering(self):
        write_metadata(self.root, {'disable_track_numbers': True})
        write_metadata(self.album, {'album': 'B'})
        resolved = self.resolver.resolve(self.track)
        self.assertFalse(resolved.numbering_enabled)
        self.assertNotIn('disable_track_numbers', resolved.as_dict())

        write_metadata(self.album, {'disable_track_numbers': False})
        self.assertTrue(self.resolver.resolve(self.track).numbering_enabled)


    def test_parse_errors(self):
        dataset = (
            ('{"artist": ', 'invalid JSON'),
            ('["artist", "A"]', 'not an object'),
            ('{"disable_track_numbers": "yes"}', 'control key is not boolean'),
            ('{"artist": {"name": "A"}}', 'nested value'),
        )
        for contents, explanation in dataset:
            with self.subTest(explanation=explanation):
                filename = write_metadata(self.artist, contents)
                with self.assertRaises(MetadataParseError) as context:
                    self.resolver.resolve(self.track)
                self.assertEqual(context.exception.filename, filename)
                self.assertIn(filename, str(context.exception))



class TagSetTests(TestCase):
    def test_from_mapping(self):
        tags = TagSet.from_mapping({
            'artist': 'A',
            'disc': 2,
            'mood': 'calm',
            'disable_track_numbers': True,
        })
        self.assertEqual(tags.artist, 'A')
        self.assertEqual(tags.disc, 2)
        self.assertEqual(dict(tags.extra), {'mood': 'calm'})
        self.assertTrue(tags.disable_numbering)


    def test_merge_keeps_original(self):
        parent = TagSet(artist='A', extra={'genre': 'Rock'})
        child = TagSet(album='B', extra={'genre': 'Pop'})
        merged = parent.merge(child)
        self.assertEqual(merged.as_dict(), {'artist': 'A', 'album': 'B', 'genre': 'Pop'})
        self.assertEqual(parent.as_dict(), {'artist': 'A', 'genre': 'Rock'})


    def test_document_parse(self):
        self.assertEqual(MetadataDocument.parse('  \n', 'x'), {})
        self.assertEqual(
            MetadataDocument.parse('{"artists": ["A", "B"], "year": 1999}', 'x'),
            {'artists': ['A', 'B'], 'year': 1999},
        )
