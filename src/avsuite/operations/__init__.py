"""Operation definitions and ffmpeg argument construction.

This module holds the closed catalog of operations, the parameter model
shared by all of them, the filter-graph templates and the builder that turns
an operation request into a concrete ffmpeg invocation.
"""
