"""
Generators — render a validated project into backend manifests.

Each backend module exposes a ``generate_<backend>()`` function that
returns a ``GenerateResult`` holding ``GeneratedFile`` instances, all
emitted through ``writer.WriterContext``.
"""
