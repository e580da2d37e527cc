"""Entry point wrapper for ``python -m progression_voicer``.

Example
-------
The following invocation writes a four-part chorale to a MIDI file::

    python -m progression_voicer --key C --progression I,IV,V7,I \
        --style SATB --output chorale.mid
"""

from . import main

if __name__ == "__main__":
    main()
