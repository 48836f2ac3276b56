import os
import sys

# Make the shared builders in this directory importable as ``helpers``.
sys.path.insert(0, os.path.dirname(__file__))
