import unittest

from evolvekit.datahandling.dataset import Dataset
from evolvekit.errors import IllegalStateError


class TestDataset(unittest.TestCase):
    def test_statistics(self):
        dataset = Dataset([1.0, 2.0, 4.0, 8.0])
        self.assertEqual(len(dataset), 4)
        self.assertEqual(dataset.sum, 15.0)
        self.assertEqual(dataset.product, 64.0)
        self.assertEqual(dataset.minimum, 1.0)
        self.assertEqual(dataset.maximum, 8.0)
        self.assertEqual(dataset.median, 3.0)
        self.assertAlmostEqual(dataset.arithmetic_mean, 3.75)
        self.assertAlmostEqual(dataset.geometric_mean, 64.0 ** 0.25)
        self.assertAlmostEqual(dataset.harmonic_mean, 4 / 1.875)
        self.assertAlmostEqual(dataset.variance, 7.1875)
        self.assertAlmostEqual(dataset.sample_variance, 7.1875 * 4 / 3)
        self.assertAlmostEqual(dataset.mean_deviation, 2.25)

    def test_append(self):
        dataset = Dataset()
        dataset.append(5)
        dataset.extend([1, 3])
        self.assertEqual(dataset.values, (5.0, 1.0, 3.0))
        self.assertEqual(dataset.minimum, 1.0)
        self.assertEqual(dataset.sample_variance, 4.0)

    def test_single_value(self):
        dataset = Dataset([2.0])
        self.assertEqual(dataset.sample_variance, 0.0)
        self.assertEqual(dataset.standard_deviation, 0.0)

    def test_zero_value(self):
        dataset = Dataset([0.0, 2.0])
        self.assertEqual(dataset.harmonic_mean, 0.0)
        self.assertEqual(dataset.product, 0.0)

    def test_empty(self):
        dataset = Dataset()
        with self.assertRaises(IllegalStateError):
            dataset.arithmetic_mean
        with self.assertRaises(IllegalStateError):
            dataset.minimum
        self.assertEqual(dataset.values, ())


if __name__ == "__main__":
    unittest.main()
