import sys
import os
import unittest

sys.path.append(os.path.normpath(os.path.join(os.path.dirname(__file__), os.path.pardir)))

import asmscore_libs.qutils as qq


class TestCheckDirPath(unittest.TestCase):
    def test_check_wrong_format(self):
        s = "♥O◘♦♥O◘♦"
        with self.assertRaises(SystemExit):
            qq.check_dirpath(s)

    def test_check_spaces(self):
        s = " misha@misha:~$"
        with self.assertRaises(SystemExit):
            qq.check_dirpath(s)

    def test_check_right_format(self):
        s = "misha@misha:~$"
        self.assertTrue(qq.check_dirpath(s))


class TestNumbers(unittest.TestCase):
    def test_parse_str_to_num(self):
        self.assertEqual(20690, qq.parse_str_to_num('20690'))
        self.assertIsInstance(qq.parse_str_to_num('20690'), int)
        self.assertEqual(549.279, qq.parse_str_to_num('549.279'))
        with self.assertRaises(ValueError):
            qq.parse_str_to_num('abc')

    def test_format_float(self):
        self.assertEqual('NA', qq.format_float(None, 6))
        self.assertEqual('-', qq.format_float(None, 6, missing='-'))
        self.assertEqual('12', qq.format_float(12, 6))
        self.assertEqual('1', qq.format_float(True, 6))
        self.assertEqual('0.333333', qq.format_float(1 / 3.0, 6))

    def test_val_to_str(self):
        self.assertEqual('-', qq.val_to_str(None))
        self.assertEqual('5', qq.val_to_str(5))


class TestLabels(unittest.TestCase):
    def test_from_file_names(self):
        labels = qq.process_labels(['/data/a/contigs.fasta', '/data/b/scaffolds.fa.gz'])
        self.assertEqual(['contigs', 'scaffolds'], labels)

    def test_duplicated_names(self):
        labels = qq.process_labels(['/data/a/contigs.fasta', '/data/b/contigs.fasta'])
        self.assertEqual(['a_contigs', 'b_contigs'], labels)

    def test_from_dirs(self):
        labels = qq.process_labels(['/data/spades/contigs.fasta', '/data/trinity/contigs.fasta'],
                                   all_labels_from_dirs=True)
        self.assertEqual(['spades', 'trinity'], labels)

    def test_remaining_duplicates_are_numbered(self):
        labels = qq.process_labels(['/data/a/contigs.fa', '/data/a/contigs.fasta', '/data/b/scaffolds.fa'])
        self.assertEqual(['a_contigs', 'a_contigs 1', 'scaffolds'], labels)

    def test_empty_given_label(self):
        labels = qq.process_labels(['/data/a/contigs.fa', '/data/b/contigs.fa'], ['spades', ''])
        self.assertEqual(['spades', 'b_contigs'], labels)

    def test_parse_labels(self):
        self.assertEqual(['Assembly 1', 'Assembly 2'],
                         qq.parse_labels('"Assembly 1, Assembly 2"', ['a.fa', 'b.fa']))

    def test_slugify(self):
        self.assertEqual('Assembly-1', qq.slugify('Assembly 1'))
        self.assertEqual('my-asm', qq.slugify('my/asm'))


if __name__ == '__main__':
    unittest.main()
