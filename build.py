#!/usr/bin/env python3
from portgen.cli import main

if __name__ == "__main__":
    main()
