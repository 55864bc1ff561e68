import tempfile
from pathlib import Path

import chex
from absl.testing import parameterized

from opticfit.utils import AutoOptions, load_auto_options, make_auto_options


class TestMakeAutoOptions(chex.TestCase, parameterized.TestCase):
    def test_defaults(self) -> None:
        options = make_auto_options()
        self.assertEqual(options, AutoOptions(1e-6, 100, 1e-12))

    @parameterized.named_parameters(
        ("step_high", {"step": 10.0}, "step", 1.0),
        ("step_low", {"step": 0.0}, "step", 1e-12),
        ("iterations_high", {"max_iterations": 5000}, "max_iterations", 1000),
        ("iterations_low", {"max_iterations": 0}, "max_iterations", 1),
        ("tolerance_high", {"tolerance": 2.0}, "tolerance", 1.0),
        ("tolerance_low", {"tolerance": 1e-30}, "tolerance", 1e-20),
    )
    def test_out_of_range_is_clamped(
        self, kwargs: dict, field: str, expected
    ) -> None:
        with self.assertLogs("opticfit", level="WARNING"):
            options = make_auto_options(**kwargs)
        self.assertEqual(getattr(options, field), expected)

    def test_in_range_is_kept(self) -> None:
        options = make_auto_options(
            step=1e-4, max_iterations=20, tolerance=1e-8
        )
        self.assertEqual(options, AutoOptions(1e-4, 20, 1e-8))


class TestLoadAutoOptions(chex.TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.tmp_dir = Path(
            self.enter_context(tempfile.TemporaryDirectory())
        )

    def _write(self, name: str, content: str) -> Path:
        path = self.tmp_dir / name
        path.write_text(content)
        return path

    def test_reads_auto_section(self) -> None:
        path = self._write(
            "options.yaml",
            (
                "auto:\n"
                "  step: 1.0e-5\n"
                "  max_iterations: 40\n"
                "  tolerance: 1.0e-10\n"
            ),
        )
        options = load_auto_options(path)
        self.assertEqual(options, AutoOptions(1e-5, 40, 1e-10))

    def test_missing_keys_use_defaults(self) -> None:
        path = self._write("partial.yaml", "auto:\n  max_iterations: 7\n")
        options = load_auto_options(path)
        self.assertEqual(options, AutoOptions(1e-6, 7, 1e-12))

    def test_empty_file_uses_defaults(self) -> None:
        path = self._write("empty.yaml", "")
        self.assertEqual(load_auto_options(path), make_auto_options())

    def test_exponent_without_dot(self) -> None:
        """YAML reads 1e-3 as a string; it is still accepted."""
        path = self._write("short.yaml", "auto:\n  step: 1e-3\n")
        self.assertEqual(load_auto_options(path).step, 1e-3)

    def test_file_values_are_clamped(self) -> None:
        path = self._write("wild.yaml", "auto:\n  max_iterations: 100000\n")
        with self.assertLogs("opticfit", level="WARNING"):
            options = load_auto_options(path)
        self.assertEqual(options.max_iterations, 1000)

    def test_non_mapping_section_raises(self) -> None:
        path = self._write("bad.yaml", "auto:\n  - 1\n  - 2\n")
        with self.assertRaises(ValueError):
            load_auto_options(path)

    def test_non_mapping_document_raises(self) -> None:
        path = self._write("list.yaml", "- auto\n")
        with self.assertRaises(ValueError):
            load_auto_options(path)

    def test_missing_file_raises(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_auto_options("/nonexistent/options.yaml")
