import threading
import unittest

from evolvekit.errors import ConfigurationError
from evolvekit.evolution.numbergenerators import (Adjustable, Binomial,
                                                  Constant, Exponential,
                                                  Gaussian, Interval, Poisson,
                                                  Swappable, UniformFloat,
                                                  UniformInt, as_generator,
                                                  draw)


class TestInterval(unittest.TestCase):
    def test_closed(self):
        interval = Interval(0.0, 1.0)
        self.assertIn(0.0, interval)
        self.assertIn(1.0, interval)
        self.assertNotIn(1.01, interval)
        self.assertNotIn(float("nan"), interval)
        self.assertNotIn("0.5", interval)

    def test_open(self):
        interval = Interval(0.5, 1.0, low_open=True)
        self.assertNotIn(0.5, interval)
        self.assertIn(0.51, interval)
        self.assertEqual(str(interval), "(0.5, 1.0]")


class TestGenerators(unittest.TestCase):
    def test_constant(self):
        generator = Constant(3)
        self.assertEqual([next(generator) for _ in range(3)], [3, 3, 3])
        self.assertEqual(generator.bounds, (3, 3))

    def test_uniform_int(self):
        generator = UniformInt(2, 5, rng=0)
        values = {next(generator) for _ in range(200)}
        self.assertEqual(values, {2, 3, 4})
        self.assertEqual(generator.bounds, (2, 4))
        with self.assertRaises(ConfigurationError):
            UniformInt(3, 3)

    def test_uniform_float(self):
        generator = UniformFloat(0.25, 0.75, rng=1)
        for _ in range(200):
            self.assertTrue(0.25 <= next(generator) < 0.75)
        with self.assertRaises(ConfigurationError):
            UniformFloat(1.0, 0.0)

    def test_seeded_generators_repeat(self):
        for factory in (lambda: Gaussian(0.0, 1.0, rng=5),
                        lambda: Poisson(3.0, rng=5),
                        lambda: Binomial(10, 0.5, rng=5),
                        lambda: Exponential(2.0, rng=5)):
            first, second = factory(), factory()
            self.assertEqual([next(first) for _ in range(10)],
                             [next(second) for _ in range(10)])

    def test_shared_between_threads(self):
        shared = UniformInt(0, 1000, rng=3)
        drawn = []

        def draw_many():
            values = [next(shared) for _ in range(250)]
            drawn.extend(values)

        threads = [threading.Thread(target=draw_many) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        sequential = UniformInt(0, 1000, rng=3)
        self.assertEqual(sorted(drawn),
                         sorted(next(sequential) for _ in range(1000)))

    def test_binomial_range(self):
        generator = Binomial(4, 0.5, rng=2)
        for _ in range(100):
            self.assertTrue(0 <= next(generator) <= 4)

    def test_adjustable(self):
        generator = Adjustable(0.1)
        self.assertEqual(next(generator), 0.1)
        thread = threading.Thread(target=generator.set, args=(0.9,))
        thread.start()
        thread.join()
        self.assertEqual(next(generator), 0.9)
        self.assertEqual(generator.bounds, (0.9, 0.9))

    def test_swappable(self):
        first, second = Constant(1), Constant(2)
        generator = Swappable(first)
        self.assertEqual(next(generator), 1)
        self.assertIs(generator.swap(second), first)
        self.assertEqual(next(generator), 2)
        self.assertIsNone(generator.bounds)


class TestValidation(unittest.TestCase):
    def test_as_generator_wraps_numbers(self):
        generator = as_generator(0.5, Interval(0.0, 1.0))
        self.assertIsInstance(generator, Constant)
        self.assertEqual(next(generator), 0.5)

    def test_as_generator_checks_range(self):
        with self.assertRaises(ConfigurationError):
            as_generator(1.5, Interval(0.0, 1.0))
        with self.assertRaises(ConfigurationError):
            as_generator(UniformFloat(0.5, 2.0), Interval(0.0, 1.0))
        with self.assertRaises(ConfigurationError):
            as_generator(Adjustable(-1), Interval(0, 10))
        generator = Gaussian(0.0, 10.0)
        self.assertIs(as_generator(generator, Interval(0.0, 1.0)), generator)

    def test_as_generator_types(self):
        with self.assertRaises(TypeError):
            as_generator("0.5")
        with self.assertRaises(TypeError):
            as_generator(True)

    def test_draw_checks_value(self):
        generator = Adjustable(0.5)
        self.assertEqual(draw(generator, Interval(0.0, 1.0)), 0.5)
        generator.set(1.5)
        with self.assertRaises(ConfigurationError):
            draw(generator, Interval(0.0, 1.0))


if __name__ == "__main__":
    unittest.main()
