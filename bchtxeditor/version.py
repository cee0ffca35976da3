PACKAGE_VERSION = '0.1.0'                          # version of the package
PACKAGE_DATE = '2026-10-17T12:00:00.000000+00:00'  # official timestamp for the package
