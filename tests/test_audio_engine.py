import unittest
from unittest import mock

import audio_engine
from audio_engine import AudioEngine, list_devices
from config import Config


class FakeCallbackAbort(Exception):
    pass


class FakeStream:
    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.started = False
        self.closed = False

    def start(self):
        self.started = True

    def stop(self):
        self.started = False
        self.kwargs["finished_callback"]()

    def close(self):
        self.closed = True


def fake_sd():
    sd = mock.Mock()
    sd.RawInputStream.side_effect = lambda **kwargs: FakeStream(**kwargs)
    sd.CallbackAbort = FakeCallbackAbort
    return sd


class TestAudioEngine(unittest.TestCase):
    def setUp(self):
        patcher = mock.patch.object(audio_engine, "sd", fake_sd())
        self.sd = patcher.start()
        self.addCleanup(patcher.stop)
        self.frames = []

    def test_opens_raw_int16_mono_stream(self):
        engine = AudioEngine(Config(), self.frames.append)
        engine.start()

        kwargs = self.sd.RawInputStream.call_args.kwargs
        self.assertEqual(kwargs["samplerate"], 16000)
        self.assertEqual(kwargs["blocksize"], 8)
        self.assertEqual(kwargs["channels"], 1)
        self.assertEqual(kwargs["dtype"], "int16")
        self.assertTrue(engine.stream.started)
        self.assertTrue(engine.running)

    def test_callback_forwards_bytes(self):
        engine = AudioEngine(Config(), self.frames.append)
        engine.start()
        engine._audio_callback(bytearray(b"\x01\x00\x02\x00"), 2, None, None)
        self.assertEqual(self.frames, [b"\x01\x00\x02\x00"])

    def test_callback_ignored_when_not_running(self):
        engine = AudioEngine(Config(), self.frames.append)
        engine._audio_callback(b"\x00\x00", 1, None, None)
        self.assertEqual(self.frames, [])

    def test_processing_error_aborts_stream(self):
        fatal = []

        def explode(_buffer):
            raise RuntimeError("bridge gone")

        engine = AudioEngine(Config(), explode, on_fatal=fatal.append)
        engine.start()
        with mock.patch("audio_engine.log_event"):
            with self.assertRaises(FakeCallbackAbort):
                engine._audio_callback(b"\x00\x00", 1, None, None)

        self.assertIsInstance(engine.last_error, RuntimeError)
        self.assertEqual(len(fatal), 1)

    def test_status_flags_are_logged(self):
        engine = AudioEngine(Config(), self.frames.append)
        engine.start()
        with mock.patch("audio_engine.log_event") as log_event_mock:
            engine._audio_callback(b"\x00\x00", 1, None, "input overflow")
        self.assertEqual(log_event_mock.call_args.args[0], "WARN")
        self.assertEqual(len(self.frames), 1)

    def test_stop_closes_stream_and_signals(self):
        engine = AudioEngine(Config(), self.frames.append)
        engine.start()
        stream = engine.stream
        engine.stop()

        self.assertTrue(stream.closed)
        self.assertIsNone(engine.stream)
        self.assertFalse(engine.running)
        self.assertTrue(engine.stopped_event.is_set())

    def test_rejects_multichannel(self):
        cfg = Config()
        cfg.audio.channels = 2
        with self.assertRaises(ValueError):
            AudioEngine(cfg, self.frames.append)

    def test_list_devices_filters_outputs(self):
        self.sd.query_devices.return_value = [
            {"name": "Mic", "max_input_channels": 1, "max_output_channels": 0, "default_samplerate": 16000.0},
            {"name": "Speakers", "max_input_channels": 0, "max_output_channels": 2, "default_samplerate": 48000.0},
        ]
        devices = list_devices()
        self.assertEqual([d["name"] for d in devices], ["Mic"])
        self.assertEqual(devices[0]["index"], 0)

    def test_start_without_sounddevice(self):
        with mock.patch.object(audio_engine, "sd", None):
            engine = AudioEngine(Config(), self.frames.append)
            with self.assertRaises(RuntimeError):
                engine.start()


if __name__ == "__main__":
    unittest.main()
