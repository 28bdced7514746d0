"""refbundle: reference-genome bundles built from archived Ensembl releases."""

__version__ = "0.1.0"
