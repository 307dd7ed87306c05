"""
sstgen - SST configuration generator for GitHub repositories.

This package analyzes a repository, asks a couple of deployment questions and
renders an SST configuration, either as a downloadable bundle or as a live
deployment streamed over Server-Sent Events.
"""

__version__ = "0.1.0"
__author__ = "sstgen"
