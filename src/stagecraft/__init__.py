"""
Stagecraft: graph model, validation and layout for agent delivery pipelines.

A pipeline is a directed graph of stages, each optionally assigned to
agents. Stagecraft converts stage lists to renderable graphs and back,
diagnoses structural defects before a pipeline runs, and computes a
layered layout whenever the operator asks for one.
"""

__version__ = "0.1.0"
