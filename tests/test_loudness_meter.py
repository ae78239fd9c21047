import unittest

import numpy as np

from errors import InputError
from loudness_meter import LoudnessMeter, mean_absolute_amplitude


class TestMeanAbsoluteAmplitude(unittest.TestCase):
    def test_mean_of_absolute_values(self):
        samples = np.array([100, -100, 300, -300], dtype=np.int16)
        self.assertAlmostEqual(mean_absolute_amplitude(samples), 200.0)

    def test_most_negative_sample_does_not_overflow(self):
        samples = np.array([-32768, -32768], dtype=np.int16)
        self.assertAlmostEqual(mean_absolute_amplitude(samples), 32768.0)

    def test_silence_is_zero(self):
        self.assertEqual(mean_absolute_amplitude(np.zeros(8, dtype=np.int16)), 0.0)

    def test_empty_frame_raises(self):
        with self.assertRaises(InputError):
            mean_absolute_amplitude(np.array([], dtype=np.int16))


class TestLoudnessMeter(unittest.TestCase):
    def test_fifo_eviction_average(self):
        meter = LoudnessMeter(window=3)
        for value in (10, 20, 30):
            meter.push(value)
        self.assertAlmostEqual(meter.push(40), 30.0)
        self.assertEqual(list(meter.history), [20.0, 30.0, 40.0])

    def test_history_never_exceeds_window(self):
        meter = LoudnessMeter(window=4)
        for i in range(20):
            meter.push(i)
            self.assertLessEqual(len(meter.history), 4)

    def test_first_frame_is_one_element_average(self):
        meter = LoudnessMeter(window=8)
        self.assertAlmostEqual(meter.update(np.array([50, -150], dtype=np.int16)), 100.0)

    def test_zero_frames_average_zero(self):
        meter = LoudnessMeter(window=8)
        for _ in range(8):
            avg = meter.update(np.zeros(8, dtype=np.int16))
        self.assertEqual(avg, 0.0)

    def test_empty_frame_leaves_history_untouched(self):
        meter = LoudnessMeter(window=2)
        meter.push(5.0)
        with self.assertRaises(InputError):
            meter.update(np.array([], dtype=np.int16))
        self.assertEqual(list(meter.history), [5.0])

    def test_average_before_any_frame_is_zero(self):
        self.assertEqual(LoudnessMeter().average(), 0.0)

    def test_invalid_window(self):
        with self.assertRaises(ValueError):
            LoudnessMeter(window=0)


if __name__ == "__main__":
    unittest.main()
