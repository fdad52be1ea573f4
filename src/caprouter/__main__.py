"""Allow running caprouter as ``python -m caprouter``."""

from caprouter import main

if __name__ == "__main__":
    main()
