"""
Core extraction engine.

The `ExtractionManager` coordinates a batch of files, delegating each file to
the `MetadataAssembler`, which decodes tags, normalizes them with the
`TagNormalizer` and computes the primary checksum. The `RecordInspector`
provides the on-demand digests and ASCII preview for finished records.
"""
