"""
Request controllers for the gatehouse service.

Controllers take plain request data and return ``(data, status, headers)``;
the route layer in :mod:`gatehouse.routes` turns that into a response.
"""
