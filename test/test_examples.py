# File: test_examples.py

import os
from subprocess import check_call
from sys import executable

import pytest

args = (
    ("regression_1d.py", "--no-plot", "--iterations", "10"),
    ("regression_1d.py", "--no-plot", "--iterations", "10", "--model-type",
        "SVGP"),
    ("regression_1d.py", "--no-plot", "--iterations", "10", "--model-type",
        "StudentT"),
    ("classification_2d.py", "--no-plot", "--iterations", "10"),
    ("classification_2d.py", "--no-plot", "--iterations", "10",
        "--model-type", "SVGP", "--likelihood", "Logistic"),
)


@pytest.mark.parametrize("args", args)
def test_example(args):
    basename, args = args[0], args[1:]
    script_path = os.path.join(os.path.dirname(__file__), "..", "examples", basename)
    check_call((executable, script_path) + args)


if __name__ == "__main__":
    pytest.main()
