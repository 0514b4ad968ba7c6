"""
Design
======

The image mirror copies the images referenced by plant records into object
storage which we control, so pages stop depending on third-party hosts.

General goals:

* The job is bounded and idempotent: every run pages over the whole table and
  records which already reference three mirrored images are skipped without
  any network traffic
* Downloads are staged on local disk under deterministic names so a rerun
  reuses them instead of fetching again
* A failed download or upload never aborts the run; it is logged and the next
  candidate URL is tried

The mirror process works like this:

1. The ``mirror_plant_images`` management command builds the storage client,
   HTTP session and a thread pool which caps the number of in-flight
   downloads and uploads for the whole run.
2. Plant records are read a page at a time and processed one after another.
3. For each plant the original URLs are tried first, then the existing backup
   URLs, until three images have been downloaded and published. Candidates
   are submitted to the pool only as many at a time as are still needed.
4. Each published image gets a public URL under the storage public base. If at
   least one was published, the plant's ``image_backup_url`` is replaced with
   the new URLs; otherwise the record is left untouched.
5. A plant counts as a success only when all three images were published. The
   command prints the success and failure totals when the table is exhausted.
"""
