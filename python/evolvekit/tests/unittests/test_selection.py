import sys
import unittest
from collections import Counter

from numpy.random import default_rng

from evolvekit.errors import ConfigurationError, PreconditionError
from evolvekit.evolution.candidates import EvaluatedCandidate
from evolvekit.evolution.numbergenerators import UniformFloat
from evolvekit.evolution.selection import (IdentitySelection, RankSelection,
                                           RouletteWheelSelection,
                                           SigmaScaling,
                                           StochasticUniversalSampling,
                                           TournamentSelection,
                                           TruncationSelection,
                                           adjusted_fitness)


def natural_population():
    return [
        EvaluatedCandidate("Steve", 10.0),
        EvaluatedCandidate("John", 4.5),
        EvaluatedCandidate("Mary", 1.0),
        EvaluatedCandidate("Gary", 0.5)
    ]


def non_natural_population():
    return [
        EvaluatedCandidate("Gary", 1.0),
        EvaluatedCandidate("Mary", 3.0),
        EvaluatedCandidate("John", 5.0),
        EvaluatedCandidate("Steve", 10.0)
    ]


class TestAdjustedFitness(unittest.TestCase):
    def test_natural(self):
        self.assertEqual(adjusted_fitness(4.0, True), 4.0)
        self.assertEqual(adjusted_fitness(0.0, True), 0.0)

    def test_non_natural(self):
        self.assertEqual(adjusted_fitness(4.0, False), 0.25)
        self.assertEqual(adjusted_fitness(0.0, False), sys.float_info.max)


class TestStochasticUniversalSampling(unittest.TestCase):
    def test_natural_frequencies(self):
        # Expectations of 4 picks are 2.5, 1.125, 0.25, 0.125.
        selection = StochasticUniversalSampling()
        for seed in range(50):
            selected = Counter(selection.select(
                natural_population(), True, 4, default_rng(seed)))
            self.assertEqual(sum(selected.values()), 4)
            self.assertIn(selected["Steve"], (2, 3))
            self.assertIn(selected["John"], (1, 2))
            self.assertIn(selected["Mary"], (0, 1))
            self.assertIn(selected["Gary"], (0, 1))

    def test_non_natural_frequencies(self):
        # Adjusted fitnesses are 1, 1/3, 1/5, 1/10, expectations of 4 picks
        # are 2.45, 0.82, 0.49, 0.24.
        selection = StochasticUniversalSampling()
        for seed in range(50):
            selected = Counter(selection.select(
                non_natural_population(), False, 4, default_rng(seed)))
            self.assertEqual(sum(selected.values()), 4)
            self.assertIn(selected["Gary"], (2, 3))
            self.assertIn(selected["Mary"], (0, 1))
            self.assertIn(selected["John"], (0, 1))
            self.assertIn(selected["Steve"], (0, 1))

    def test_perfect_non_natural_candidate_dominates(self):
        population = [
            EvaluatedCandidate("Perfect", 0.0),
            EvaluatedCandidate("Good", 1.0),
            EvaluatedCandidate("Bad", 2.0)
        ]
        selected = StochasticUniversalSampling().select(
            population, False, 10, default_rng(0))
        self.assertEqual(selected, ["Perfect"] * 10)


class TestRouletteWheelSelection(unittest.TestCase):
    def test_selection_size(self):
        selected = RouletteWheelSelection().select(
            natural_population(), True, 100, default_rng(0))
        self.assertEqual(len(selected), 100)

    def test_fitter_selected_more_often(self):
        selected = Counter(RouletteWheelSelection().select(
            natural_population(), True, 10000, default_rng(1)))
        self.assertGreater(selected["Steve"], selected["John"])
        self.assertGreater(selected["John"], selected["Mary"])
        self.assertGreater(selected["Mary"], selected["Gary"])

    def test_non_natural(self):
        selected = Counter(RouletteWheelSelection().select(
            non_natural_population(), False, 10000, default_rng(2)))
        self.assertGreater(selected["Gary"], selected["Mary"])
        self.assertGreater(selected["Mary"], selected["Steve"])

    def test_perfect_non_natural_candidate(self):
        population = [
            EvaluatedCandidate("Perfect", 0.0),
            EvaluatedCandidate("Good", 1.0)
        ]
        selected = RouletteWheelSelection().select(
            population, False, 20, default_rng(3))
        self.assertEqual(selected, ["Perfect"] * 20)

    def test_empty_population(self):
        with self.assertRaises(PreconditionError):
            RouletteWheelSelection().select([], True, 1, default_rng(0))


class TestRankSelection(unittest.TestCase):
    def test_delegated_sampling_frequencies(self):
        selection = RankSelection(StochasticUniversalSampling())
        for seed in range(50):
            selected = Counter(selection.select(
                natural_population(), True, 4, default_rng(seed)))
            self.assertEqual(sum(selected.values()), 4)
            self.assertIn(selected["Steve"], (1, 2))
            self.assertIn(selected["John"], (1, 2))
            self.assertIn(selected["Mary"], (0, 1))
            self.assertIn(selected["Gary"], (0, 1))

    def test_frequencies(self):
        # Ranks score 3, 2, 1, 0 regardless of the raw fitness.
        selection = RankSelection()
        for seed in range(50):
            selected = Counter(selection.select(
                natural_population(), True, 6, default_rng(seed)))
            self.assertEqual(selected["Steve"], 3)
            self.assertEqual(selected["John"], 2)
            self.assertEqual(selected["Mary"], 1)
            self.assertEqual(selected["Gary"], 0)

    def test_non_natural_ranks_by_position(self):
        selected = Counter(RankSelection().select(
            non_natural_population(), False, 6, default_rng(0)))
        self.assertEqual(selected["Gary"], 3)
        self.assertEqual(selected["Steve"], 0)


class TestSigmaScaling(unittest.TestCase):
    def test_scaled_fitness(self):
        self.assertEqual(SigmaScaling.scaled_fitness(5.0, 5.0, 0.0), 1.0)
        self.assertEqual(SigmaScaling.scaled_fitness(7.0, 5.0, 1.0), 2.0)
        self.assertEqual(SigmaScaling.scaled_fitness(0.0, 5.0, 1.0), 0.1)

    def test_selection(self):
        selected = SigmaScaling().select(
            natural_population(), True, 20, default_rng(0))
        self.assertEqual(len(selected), 20)
        self.assertEqual(Counter(selected).most_common(1)[0][0], "Steve")

    def test_uniform_population(self):
        population = [EvaluatedCandidate(name, 3.0) for name in "ABCD"]
        selected = Counter(SigmaScaling().select(
            population, True, 8, default_rng(0)))
        self.assertEqual(selected, Counter("AABBCCDD"))


class TestTournamentSelection(unittest.TestCase):
    def test_probability_range(self):
        with self.assertRaises(ConfigurationError):
            TournamentSelection(0.5)
        with self.assertRaises(ConfigurationError):
            TournamentSelection(1.1)
        with self.assertRaises(ConfigurationError):
            TournamentSelection(UniformFloat(0.4, 0.9))
        selection = TournamentSelection(1.0)
        with self.assertRaises(ConfigurationError):
            selection.probability = 0.2

    def test_fittest_always_wins(self):
        population = [EvaluatedCandidate("Fit", 10.0),
                      EvaluatedCandidate("Unfit", 1.0)]
        selected = Counter(TournamentSelection(1.0).select(
            population, True, 1000, default_rng(0)))
        # The unfit candidate only wins when it is drawn twice.
        self.assertGreater(selected["Fit"], 650)
        self.assertLess(selected["Unfit"], 350)

    def test_non_natural(self):
        population = [EvaluatedCandidate("Fit", 1.0),
                      EvaluatedCandidate("Unfit", 10.0)]
        selected = Counter(TournamentSelection(1.0).select(
            population, False, 1000, default_rng(0)))
        self.assertGreater(selected["Fit"], selected["Unfit"])


class TestTruncationSelection(unittest.TestCase):
    def test_fittest_half(self):
        population = [EvaluatedCandidate(name, fitness) for name, fitness
                      in zip("ABCD", (10.0, 9.1, 8.4, 6.2))]
        for seed in range(10):
            selected = TruncationSelection(0.5).select(
                population, True, 2, default_rng(seed))
            self.assertEqual(selected, ["A", "B"])

    def test_repeats_eligible(self):
        population = [EvaluatedCandidate(name, fitness) for name, fitness
                      in zip("ABCD", (10.0, 9.1, 8.4, 6.2))]
        selected = TruncationSelection(0.5).select(
            population, True, 5, default_rng(0))
        self.assertEqual(selected, ["A", "B", "A", "B", "A"])

    def test_half_rounds_up(self):
        population = [EvaluatedCandidate(name, fitness) for name, fitness
                      in zip("ABCDE", (10.0, 9.0, 8.0, 7.0, 6.0))]
        selected = TruncationSelection(0.5).select(
            population, True, 5, default_rng(0))
        self.assertEqual(selected, ["A", "B", "C", "A", "B"])

    def test_ratio_range(self):
        with self.assertRaises(ConfigurationError):
            TruncationSelection(0.0)
        with self.assertRaises(ConfigurationError):
            TruncationSelection(1.5)
        TruncationSelection(1.0)
        TruncationSelection(UniformFloat(0.2, 0.8))


class TestIdentitySelection(unittest.TestCase):
    def test_verbatim(self):
        population = natural_population()
        selection = IdentitySelection()
        for quantity in range(len(population) + 1):
            self.assertEqual(
                selection.select(population, True, quantity, default_rng(0)),
                [member.candidate for member in population[:quantity]]
            )

    def test_too_many(self):
        with self.assertRaises(PreconditionError):
            IdentitySelection().select(
                natural_population(), True, 5, default_rng(0))


if __name__ == "__main__":
    unittest.main()
