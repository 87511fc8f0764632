"""Metadata package."""

from __future__ import annotations

__title__ = "cmakebuild"
__package_name__ = "cmakebuild"
__version__ = "0.3.0"
__description__ = "Drive cmake and make as one observable native build phase"
__email__ = "build-tools@cmakebuild.dev"
__author__ = "cmakebuild contributors"
__github__ = "https://github.com/cmakebuild/cmakebuild"
__docs__ = "https://cmakebuild.readthedocs.io"
__tracker__ = "https://github.com/cmakebuild/cmakebuild/issues"
__pypi__ = "https://pypi.org/project/cmakebuild/"
__license__ = "MIT"
__copyright__ = "Copyright 2026- cmakebuild contributors"
