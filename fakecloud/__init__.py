from fakecloud.api.elb import ElbServer
from fakecloud.api.route53 import Route53Server

__all__ = ['ElbServer', 'Route53Server']
