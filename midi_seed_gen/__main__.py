"""Entry point wrapper for ``python -m midi_seed_gen``.

Example
-------
The following invocation writes a one-bar phrase from seed 123::

    python -m midi_seed_gen --seed 123 --bars 1 --out phrase.mid
"""

# Reuse the package level ``main`` function so both ``python -m`` and the
# installed console script behave identically.
from . import main

if __name__ == "__main__":
    main()
