'''
Unit tests for the command line entry point
'''


import os
from tempfile import TemporaryDirectory
from unittest import TestCase

from musicnorm.app import run



class RunTests(TestCase):
    def setUp(self):
        self.tmp = TemporaryDirectory()
        self.config = os.path.join(self.tmp.name, 'job.yml')
        self.track = os.path.join(self.tmp.name, 'track.mp3')


    def tearDown(self):
        self.tmp.cleanup()


    def test_bad_config(self):
        dataset = (
            ('bitrate: loud\n', 'Invalid configuration'),
            ('bitrate: [unclosed\n', 'Unable to read configuration'),
            (None, 'Unable to read configuration'),
        )
        for text, message in dataset:
            with self.subTest(text=text):
                if text is None:
                    if os.path.exists(self.config):
                        os.remove(self.config)
                else:
                    with open(self.config, 'w') as f:
                        f.write(text)
                with self.assertLogs('musicnorm.app', 'ERROR') as logs:
                    with self.assertRaises(SystemExit) as context:
                        run(['--config', self.config, self.track])
                self.assertEqual(context.exception.code, 1)
                self.assertIn(message, logs.output[0])
                self.assertIn(self.config, logs.output[0])
