# -*- coding: ascii -*-
"""Test package for rexstat."""
