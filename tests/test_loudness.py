'''
Unit tests for two-pass loudness normalization
'''


import os
from tempfile import TemporaryDirectory
from unittest import TestCase

from musicnorm.errors import ExternalToolError
from musicnorm.transcoder.encoders import Toolkit
from musicnorm.transcoder.loudness import (
    LoudnessStats,
    NormalizationEngine,
    parse_loudnorm,
)


FFMPEG_OUTPUT = '''\
Input #0, wav, from 'song.wav':
  Duration: 00:03:12.00, bitrate: 1411 kb/s
  Stream #0:0: Audio: pcm_s16le, 44100 Hz, stereo, s16, 1411 kb/s
Stream mapping:
  Stream #0:0 -> #0:0 (pcm_s16le (native) -> pcm_s16le (native))
Output #0, null, to 'pipe:':
  Metadata: { encoder : Lavf58.76.100 }
size=N/A time=00:03:12.00 bitrate=N/A speed= 451x
[Parsed_loudnorm_0 @ 0x55d0b5a5c1c0]
{
	"input_i" : "-27.61",
	"input_tp" : "-4.47",
	"input_lra" : "18.06",
	"input_thresh" : "-39.20",
	"output_i" : "-16.58",
	"output_tp" : "-1.50",
	"output_lra" : "14.78",
	"output_thresh" : "-27.71",
	"normalization_type" : "dynamic",
	"target_offset" : "0.58"
}'''.splitlines()



class ParseTests(TestCase):
    def test_statistics(self):
        stats = parse_loudnorm(FFMPEG_OUTPUT)
        self.assertEqual(stats, LoudnessStats(
            input_i='-27.61',
            input_lra='18.06',
            input_tp='-4.47',
            input_thresh='-39.20',
        ))


    def test_filter(self):
        stats = parse_loudnorm(FFMPEG_OUTPUT)
        self.assertEqual(
            stats.as_filter(),
            'loudnorm=linear=true:measured_I=-27.61:measured_LRA=18.06'
            ':measured_TP=-4.47:measured_thresh=-39.20',
        )


    def test_invalid_output(self):
        dataset = (
            (FFMPEG_OUTPUT[:8], 'no marker'),
            (FFMPEG_OUTPUT[:9], 'nothing after marker'),
            (FFMPEG_OUTPUT[:12], 'truncated statistics'),
            (FFMPEG_OUTPUT[:9] + ['{"input_i": "-20.0"}'], 'incomplete statistics'),
        )
        for lines, explanation in dataset:
            with self.subTest(explanation=explanation):
                with self.assertRaises(ValueError):
                    parse_loudnorm(lines)



class RecordingToolkit(Toolkit):
    '''Toolkit that writes placeholder files and records its calls'''

    def __init__(self, analysis=FFMPEG_OUTPUT, fail=False):
        self.analysis = analysis
        self.fail = fail
        self.calls = []


    def analyze_loudness(self, source):
        self.calls.append(('analyze_loudness', source))
        return self.analysis


    def correct_loudness(self, source, destination, audio_filter):
        self.calls.append(('correct_loudness', source, audio_filter))
        with open(destination, 'wb') as f:
            f.write(b'normalized')
        if self.fail:
            raise ExternalToolError(['ffmpeg'], 1, ['Conversion failed!'])


    def encode(self, source, destination, bitrate):
        self.calls.append(('encode', source, bitrate))
        with open(destination, 'wb') as f:
            f.write(b'encoded')



class EngineTests(TestCase):
    def setUp(self):
        self.tmp = TemporaryDirectory()
        self.waveform = os.path.join(self.tmp.name, 'song.wav')
        with open(self.waveform, 'wb') as f:
            f.write(b'waveform')
        self.output = os.path.join(self.tmp.name, 'song.normalized.wav')


    def tearDown(self):
        self.tmp.cleanup()


    def test_two_passes(self):
        toolkit = RecordingToolkit()
        engine = NormalizationEngine(toolkit)
        stats = engine.normalize(self.waveform, self.output)
        self.assertEqual(stats.input_i, '-27.61')
        self.assertEqual([call[0] for call in toolkit.calls], [
            'analyze_loudness',
            'correct_loudness',
        ])
        self.assertEqual(toolkit.calls[1][1], self.waveform)
        self.assertEqual(toolkit.calls[1][2], stats.as_filter())
        self.assertTrue(os.path.exists(self.output))
        self.assertEqual(sorted(os.listdir(self.tmp.name)), ['song.normalized.wav', 'song.wav'])


    def test_unparseable_analysis(self):
        toolkit = RecordingToolkit(analysis=FFMPEG_OUTPUT[:8])
        engine = NormalizationEngine(toolkit)
        with self.assertRaises(ExternalToolError) as context:
            engine.normalize(self.waveform, self.output)
        self.assertEqual(context.exception.diagnostics[1:], FFMPEG_OUTPUT[:8])
        self.assertEqual(len(toolkit.calls), 1)
        self.assertFalse(os.path.exists(self.output))


    def test_failed_correction(self):
        toolkit = RecordingToolkit(fail=True)
        engine = NormalizationEngine(toolkit)
        with self.assertRaises(ExternalToolError) as context:
            engine.normalize(self.waveform, self.output)
        self.assertEqual(context.exception.diagnostics, ['Conversion failed!'])
        self.assertIn('  Conversion failed!', str(context.exception))
        self.assertEqual(sorted(os.listdir(self.tmp.name)), ['song.wav'])


    def test_encode(self):
        toolkit = RecordingToolkit()
        engine = NormalizationEngine(toolkit, bitrate='256k')
        destination = os.path.join(self.tmp.name, 'song.normalized.mp3')
        engine.encode(self.waveform, destination)
        self.assertEqual(toolkit.calls, [('encode', self.waveform, '256k')])
        with open(destination, 'rb') as f:
            self.assertEqual(f.read(), b'encoded')
