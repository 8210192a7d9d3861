import unittest
from collections import Counter

from numpy.random import default_rng

from evolvekit.errors import ConfigurationError, PreconditionError
from evolvekit.evolution.bitstring import BitString
from evolvekit.evolution.operators.mutation import (BitStringMutater,
                                                    CenterInverseMutater,
                                                    Mutation,
                                                    SliceOrderMutater,
                                                    StringMutater,
                                                    SwapReverseSectionsMutater)

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"


class TestBitStringMutater(unittest.TestCase):
    def test_single_flip(self):
        rng = default_rng(0)
        mutater = BitStringMutater(probability=1.0, mutations=1)
        for _ in range(50):
            original = BitString.random(16, rng)
            mutant = mutater.mutate(original, rng)
            self.assertEqual(
                abs(mutant.ones_count() - original.ones_count()), 1)
            self.assertEqual(len(mutant), 16)

    def test_zero_probability(self):
        original = BitString.from_string("1010")
        mutant = BitStringMutater(probability=0.0).mutate(
            original, default_rng(0))
        self.assertEqual(mutant, original)

    def test_original_unchanged(self):
        original = BitString.from_string("00000000")
        BitStringMutater(mutations=3).mutate(original, default_rng(1))
        self.assertEqual(original.ones_count(), 0)

    def test_configuration(self):
        with self.assertRaises(ConfigurationError):
            BitStringMutater(probability=2.0)
        with self.assertRaises(ConfigurationError):
            BitStringMutater(mutations=-1)


class TestStringMutater(unittest.TestCase):
    def test_characters_from_alphabet(self):
        rng = default_rng(2)
        mutater = StringMutater(ALPHABET, 0.5)
        for _ in range(20):
            mutant = mutater.mutate("ABCDEFGHIJ", rng)
            self.assertEqual(len(mutant), 10)
            self.assertTrue(set(mutant) <= set(ALPHABET))

    def test_zero_probability(self):
        mutant = StringMutater(ALPHABET, 0.0).mutate(
            "HELLO", default_rng(0))
        self.assertEqual(mutant, "HELLO")

    def test_full_probability_single_character(self):
        mutant = StringMutater("X", 1.0).mutate("ABC", default_rng(0))
        self.assertEqual(mutant, "XXX")

    def test_invalid_alphabet(self):
        with self.assertRaises(ConfigurationError):
            StringMutater("", 0.1)
        with self.assertRaises(ConfigurationError):
            StringMutater("ABC", 1.5)


class TestPermutationMutaters(unittest.TestCase):
    def test_slice_order_preserves_items(self):
        rng = default_rng(3)
        mutater = SliceOrderMutater(count=3, amount=2)
        original = list(range(10))
        for _ in range(20):
            mutant = mutater.mutate(original, rng)
            self.assertEqual(Counter(mutant), Counter(original))
        self.assertEqual(original, list(range(10)))

    def test_slice_order_pair(self):
        self.assertEqual(
            SliceOrderMutater().mutate([1, 2], default_rng(0)), [2, 1])

    def test_swap_reverse_sections(self):
        self.assertEqual(
            SwapReverseSectionsMutater().mutate([1, 2, 3], default_rng(0)),
            [3, 2, 1]
        )
        rng = default_rng(4)
        original = tuple(range(8))
        for _ in range(20):
            mutant = SwapReverseSectionsMutater().mutate(original, rng)
            self.assertIsInstance(mutant, tuple)
            self.assertEqual(sorted(mutant), list(original))

    def test_swap_reverse_sections_too_short(self):
        with self.assertRaises(PreconditionError):
            SwapReverseSectionsMutater().mutate([1, 2], default_rng(0))

    def test_center_inverse(self):
        self.assertEqual(
            CenterInverseMutater().mutate([1, 2], default_rng(0)), [2, 1])
        self.assertEqual(
            CenterInverseMutater().mutate([1], default_rng(0)), [1])
        rng = default_rng(5)
        original = list(range(6))
        for _ in range(20):
            mutant = CenterInverseMutater().mutate(original, rng)
            self.assertEqual(sorted(mutant), original)
        self.assertEqual(original, list(range(6)))


class TestMutation(unittest.TestCase):
    def test_applies_to_each_candidate(self):
        mutation = Mutation(StringMutater("Z", 1.0))
        offspring = mutation.apply(["AA", "BB", "CC"], default_rng(0))
        self.assertEqual(offspring, ["ZZ", "ZZ", "ZZ"])


if __name__ == "__main__":
    unittest.main()
