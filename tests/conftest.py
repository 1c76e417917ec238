import pytest
import sys
import os
from xml.etree import ElementTree as ET
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from fakecloud.api.elb import ElbServer
from fakecloud.api.route53 import Route53Server


def _strip_namespaces(root):
    for element in root.iter():
        element.tag = element.tag.rsplit('}', 1)[-1]
    return root


@pytest.fixture
def parse_xml():
    """Parses a response body with namespaces dropped from every tag"""
    def parse(response):
        data = response.data if hasattr(response, 'data') else response.content
        return _strip_namespaces(ET.fromstring(data))
    return parse


@pytest.fixture
def elb_server():
    """An ELB server that is not bound to a port"""
    return ElbServer()


@pytest.fixture
def elb_client(elb_server):
    """Flask test client for the fake ELB API"""
    elb_server.app.config['TESTING'] = True
    return elb_server.app.test_client()


@pytest.fixture
def elb_call(elb_client):
    """Posts an ELB action with form parameters"""
    def call(action, **params):
        return elb_client.post('/', data={'Action': action, **params})
    return call


@pytest.fixture
def create_lb_params():
    """Minimal valid CreateLoadBalancer parameters"""
    return {
        'LoadBalancerName': 'lb-1',
        'AvailabilityZones.member.1': 'us-east-1a',
        'Listeners.member.1.Protocol': 'http',
        'Listeners.member.1.InstanceProtocol': 'http',
        'Listeners.member.1.LoadBalancerPort': '80',
        'Listeners.member.1.InstancePort': '8080',
    }


@pytest.fixture
def route53_server():
    """A Route 53 server that is not bound to a port"""
    return Route53Server()


@pytest.fixture
def route53_client(route53_server):
    """Flask test client for the fake Route 53 API"""
    route53_server.app.config['TESTING'] = True
    return route53_server.app.test_client()
