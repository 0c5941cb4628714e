#!/usr/bin/env python3
"""Console-script targets for clockboundc and clockboundc-now."""

from clockboundc.ui.cli import run as clockboundc
from clockboundc.ui.cli import run_now as clockboundc_now


if __name__ == "__main__":
    clockboundc()
