import pytest


@pytest.fixture
def lb(elb_call, create_lb_params, elb_server):
    """lb-1 created over the API with a single 80 -> 8080 listener"""
    assert elb_call('CreateLoadBalancer', **create_lb_params).status_code == 200
    return elb_server


def _listener_params(index, port, protocol='http', instance_port=8080):
    key = f'Listeners.member.{index}'
    return {
        f'{key}.Protocol': protocol,
        f'{key}.InstanceProtocol': 'http',
        f'{key}.LoadBalancerPort': str(port),
        f'{key}.InstancePort': str(instance_port),
    }


def _ports(server):
    return [listener.load_balancer_port for listener in server.load_balancer('lb-1').listeners]


def _error_code(parse_xml, response):
    return parse_xml(response).findtext('Error/Code')


def test_create_listeners_appends(elb_call, lb):
    response = elb_call('CreateLoadBalancerListeners', LoadBalancerName='lb-1',
                        **_listener_params(1, 443, protocol='https'), **_listener_params(2, 8443))
    assert response.status_code == 200
    assert _ports(lb) == [80, 443, 8443]
    assert lb.load_balancer('lb-1').listeners[1].protocol == 'HTTPS'


def test_create_listener_duplicate_port(elb_call, parse_xml, lb):
    assert elb_call('CreateLoadBalancerListeners', LoadBalancerName='lb-1',
                    **_listener_params(1, 443)).status_code == 200
    response = elb_call('CreateLoadBalancerListeners', LoadBalancerName='lb-1',
                        **_listener_params(1, 443, instance_port=9090))
    assert response.status_code == 400
    body = parse_xml(response)
    assert body.findtext('Error/Code') == '400'
    assert body.findtext('Error/Message') == 'Bad Request'
    assert _ports(lb) == [80, 443]


def test_create_listeners_duplicate_within_request(elb_call, lb):
    response = elb_call('CreateLoadBalancerListeners', LoadBalancerName='lb-1',
                        **_listener_params(1, 443), **_listener_params(2, 443))
    assert response.status_code == 400
    assert _ports(lb) == [80]


def test_create_listeners_missing_load_balancer(elb_call, parse_xml):
    response = elb_call('CreateLoadBalancerListeners', LoadBalancerName='ghost', **_listener_params(1, 443))
    assert _error_code(parse_xml, response) == 'AccessPointNotFound'


def test_delete_listeners_by_port(elb_call, lb):
    elb_call('CreateLoadBalancerListeners', LoadBalancerName='lb-1',
             **_listener_params(1, 443), **_listener_params(2, 8080), **_listener_params(3, 8443))
    response = elb_call('DeleteLoadBalancerListeners', **{
        'LoadBalancerName': 'lb-1',
        'LoadBalancerPorts.member.1': '443',
        'LoadBalancerPorts.member.2': '8443',
    })
    assert response.status_code == 200
    assert _ports(lb) == [80, 8080]


def test_delete_listeners_missing_load_balancer(elb_call, parse_xml):
    response = elb_call('DeleteLoadBalancerListeners', **{
        'LoadBalancerName': 'ghost',
        'LoadBalancerPorts.member.1': '80',
    })
    assert response.status_code == 400
    assert _error_code(parse_xml, response) == 'AccessPointNotFound'


def test_delete_listeners_requires_ports(elb_call, parse_xml, lb):
    response = elb_call('DeleteLoadBalancerListeners', LoadBalancerName='lb-1')
    assert _error_code(parse_xml, response) == 'ValidationError'
    assert _ports(lb) == [80]


def test_set_ssl_certificate(elb_call, lb):
    response = elb_call('SetLoadBalancerListenerSSLCertificate', LoadBalancerName='lb-1',
                        LoadBalancerPort='80', SSLCertificateId='arn:cert/new')
    assert response.status_code == 200
    assert lb.load_balancer('lb-1').listeners[0].ssl_certificate_id == 'arn:cert/new'


def test_set_ssl_certificate_unknown_port(elb_call, parse_xml, lb):
    response = elb_call('SetLoadBalancerListenerSSLCertificate', LoadBalancerName='lb-1',
                        LoadBalancerPort='443', SSLCertificateId='arn:cert/new')
    assert response.status_code == 400
    assert _error_code(parse_xml, response) == 'ListenerNotFound'


def test_set_ssl_certificate_missing_load_balancer(elb_call, parse_xml):
    response = elb_call('SetLoadBalancerListenerSSLCertificate', LoadBalancerName='ghost',
                        LoadBalancerPort='443', SSLCertificateId='arn:cert/new')
    assert _error_code(parse_xml, response) == 'AccessPointNotFound'


# --- Health check ---

def _health_check_params(target):
    return {
        'LoadBalancerName': 'lb-1',
        'HealthCheck.HealthyThreshold': '3',
        'HealthCheck.UnhealthyThreshold': '4',
        'HealthCheck.Interval': '15',
        'HealthCheck.Timeout': '6',
        'HealthCheck.Target': target,
    }


@pytest.mark.parametrize('target', ['TCP:80', 'HTTP:80/ping', 'HTTPS:443/', 'SSL:443/'])
def test_configure_health_check(elb_call, parse_xml, lb, target):
    response = elb_call('ConfigureHealthCheck', **_health_check_params(target))
    assert response.status_code == 200
    assert parse_xml(response).findtext('ConfigureHealthCheckResult/HealthCheck/Target') == target

    health_check = lb.load_balancer('lb-1').health_check
    assert health_check.target == target
    assert health_check.healthy_threshold == 3
    assert health_check.unhealthy_threshold == 4
    assert health_check.interval == 15
    assert health_check.timeout == 6


@pytest.mark.parametrize('target', ['HTTP80', 'HTTP:80', 'HTTP:/ping', 'TCP:', 'SSL:443'])
def test_configure_health_check_bad_target(elb_call, parse_xml, lb, target):
    response = elb_call('ConfigureHealthCheck', **_health_check_params(target))
    assert response.status_code == 400
    assert _error_code(parse_xml, response) == 'ValidationError'
    assert lb.load_balancer('lb-1').health_check.target == 'TCP:80'


def test_configure_health_check_missing_field(elb_call, parse_xml, lb):
    params = _health_check_params('TCP:80')
    del params['HealthCheck.Timeout']
    response = elb_call('ConfigureHealthCheck', **params)
    assert parse_xml(response).findtext('Error/Message') == 'HealthCheck.Timeout is required.'


def test_configure_health_check_missing_load_balancer(elb_call, parse_xml):
    params = _health_check_params('TCP:80')
    params['LoadBalancerName'] = 'ghost'
    response = elb_call('ConfigureHealthCheck', **params)
    assert _error_code(parse_xml, response) == 'LoadBalancerNotFound'
