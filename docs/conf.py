# Sphinx configuration file

import os
import sys
sys.path.insert(0, os.path.abspath('../src'))

project = 'race-machine'
copyright = '2026, race-machine contributors'
author = 'race-machine contributors'
release = '0.1.0'

extensions = [
    'sphinx.ext.autodoc',
    'sphinx.ext.napoleon',
    'sphinx.ext.viewcode',
    'sphinx.ext.intersphinx',
    'sphinx_autodoc_typehints',
]

root_doc = 'index'
exclude_patterns = ['_build', 'Thumbs.db', '.DS_Store']

html_theme = 'sphinx_rtd_theme'

autodoc_default_options = {
    'members': True,
    'member-order': 'bysource',
    'special-members': '__init__',
    'undoc-members': True,
    'exclude-members': '__weakref__, model_config, model_fields, model_computed_fields'
}

napoleon_google_docstring = True
napoleon_numpy_docstring = False

# Keep the watcher and entry-action aliases readable in signatures.
autodoc_type_aliases = {
    'Watcher': 'race_machine.engine.race.Watcher',
    'EntryAction': 'race_machine.engine.state_machine.EntryAction',
    'StateGraph': 'race_machine.engine.state_machine.StateGraph',
}

intersphinx_mapping = {
    'python': ('https://docs.python.org/3', None),
    'pydantic': ('https://docs.pydantic.dev/latest', None),
}
