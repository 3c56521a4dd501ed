from dockerhub_proxy.tests.fixtures_clients import *  # noqa
