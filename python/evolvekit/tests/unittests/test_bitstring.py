import unittest

from evolvekit.evolution.bitstring import BitString


class TestBitString(unittest.TestCase):
    def test_from_string(self):
        bits = BitString.from_string("1011")
        self.assertEqual(len(bits), 4)
        self.assertEqual(bits.to_number(), 11)
        self.assertEqual(str(bits), "1011")
        self.assertTrue(bits[0])
        self.assertFalse(bits[2])
        with self.assertRaises(ValueError):
            BitString.from_string("10a1")

    def test_leading_zeros(self):
        bits = BitString(8, 3)
        self.assertEqual(str(bits), "00000011")
        self.assertEqual(bits.zeros_count(), 6)
        self.assertEqual(str(BitString(0)), "")

    def test_invalid(self):
        with self.assertRaises(ValueError):
            BitString(-1)
        with self.assertRaises(ValueError):
            BitString(2, 4)

    def test_bit_operations(self):
        bits = BitString(4)
        bits.set_bit(3)
        self.assertEqual(str(bits), "1000")
        bits.flip_bit(0)
        self.assertEqual(str(bits), "1001")
        bits.clear_bit(3)
        self.assertEqual(bits.ones_count(), 1)
        with self.assertRaises(IndexError):
            bits.get_bit(4)

    def test_swap_range(self):
        first = BitString.from_string("11111111")
        second = BitString.from_string("00000000")
        first.swap_range(second, 2, 3)
        self.assertEqual(str(first), "11100011")
        self.assertEqual(str(second), "00011100")
        with self.assertRaises(IndexError):
            first.swap_range(second, 6, 3)
        with self.assertRaises(ValueError):
            first.swap_range(BitString(4), 0, 1)

    def test_copy_is_independent(self):
        bits = BitString.from_string("0101")
        copy = bits.copy()
        copy.flip_bit(0)
        self.assertEqual(str(bits), "0101")
        self.assertNotEqual(bits, copy)
        self.assertEqual(bits, BitString(4, 5))

    def test_random(self):
        first = BitString.random(64, 3)
        second = BitString.random(64, 3)
        self.assertEqual(first, second)
        self.assertEqual(len(first), 64)


if __name__ == "__main__":
    unittest.main()
