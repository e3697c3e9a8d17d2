"""
Error pipeline (pure, deterministic).

classify (pod snapshots -> error records) -> aggregate (per namespace) -> score/rank.
Nothing here performs I/O or keeps state between calls.
"""
