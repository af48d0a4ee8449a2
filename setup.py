from setuptools import setup

setup(
    name="fsa-regex",
    version="0.1.0",
    description="Derive regular expressions from hand-built finite-state automata.",
    packages=["fsa_regex"],
    python_requires=">=3.8",
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": ["fsa-regex=fsa_regex.cli:run"]},
)
