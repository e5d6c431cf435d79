"""Elements to build tests for applications using
:class:`contenttags.app.Application`"""
