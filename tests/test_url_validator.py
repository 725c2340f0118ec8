import socket
from unittest.mock import Mock

import pytest

from weblearn.services.url_validator import UrlSafetyValidator, is_private_address


def _answers(*addresses):
    return [(socket.AF_INET, socket.SOCK_STREAM, 6, '', (addr, 0)) for addr in addresses]


def _validator(*addresses):
    return UrlSafetyValidator(resolver=Mock(return_value=_answers(*addresses)))


def test_public_url_is_safe():
    validator = _validator('93.184.216.34')
    verdict = validator.validate('https://example.com/page')
    assert verdict.safe is True
    assert verdict.reason == 'ok'
    validator._resolver.assert_called_once_with('example.com', None)


@pytest.mark.parametrize('address', ['10.1.2.3', '172.16.0.9', '192.168.1.1', '169.254.169.254', '127.0.0.2'])
def test_private_ipv4_resolution_is_blocked(address):
    verdict = _validator(address).validate('http://internal.example.com/')
    assert verdict.safe is False
    assert verdict.reason == 'private_network_blocked'


@pytest.mark.parametrize('address', ['fd00::1', 'fe80::1%eth0', '::1', '::ffff:10.0.0.1'])
def test_private_ipv6_resolution_is_blocked(address):
    assert is_private_address(address) is True


@pytest.mark.parametrize('sockaddr', [('fd00::1', 0, 0, 0), ('fe80::1%eth0', 0, 0, 2), ('::ffff:10.0.0.1', 0, 0, 0)])
def test_private_ipv6_answer_blocks_validation(sockaddr):
    resolver = Mock(return_value=[
        (socket.AF_INET, socket.SOCK_STREAM, 6, '', ('93.184.216.34', 0)),
        (socket.AF_INET6, socket.SOCK_STREAM, 6, '', sockaddr),
    ])
    verdict = UrlSafetyValidator(resolver=resolver).validate('https://dual-stack.example.com/')
    assert verdict == (False, 'private_network_blocked')


def test_public_ipv6_answer_is_safe():
    resolver = Mock(return_value=[(socket.AF_INET6, socket.SOCK_STREAM, 6, '', ('2606:2800:220:1::', 0, 0, 0))])
    assert UrlSafetyValidator(resolver=resolver).validate('https://v6.example.com/').safe is True


def test_any_private_answer_blocks():
    verdict = _validator('93.184.216.34', '10.0.0.5').validate('https://mixed.example.com')
    assert verdict.reason == 'private_network_blocked'


def test_loopback_literal_blocked_without_dns():
    resolver = Mock()
    validator = UrlSafetyValidator(resolver=resolver)
    verdict = validator.validate('http://127.0.0.1/admin')
    assert verdict == (False, 'local_address_blocked')
    resolver.assert_not_called()


@pytest.mark.parametrize('url', ['http://localhost:8080/', 'http://printer.local/', 'http://[::1]/', 'http://0.0.0.0/'])
def test_local_hostnames_blocked(url):
    resolver = Mock()
    verdict = UrlSafetyValidator(resolver=resolver).validate(url)
    assert verdict.reason == 'local_address_blocked'
    resolver.assert_not_called()


@pytest.mark.parametrize('url,reason', [
    ('not a url', 'invalid_url'),
    ('', 'invalid_url'),
    ('http://', 'invalid_url'),
    ('http://example.com:99999/', 'invalid_url'),
    ('ftp://example.com/file', 'unsupported_protocol'),
    ('file:///etc/passwd', 'unsupported_protocol'),
    ('javascript:alert(1)', 'unsupported_protocol'),
])
def test_rejected_before_dns(url, reason):
    resolver = Mock()
    verdict = UrlSafetyValidator(resolver=resolver).validate(url)
    assert verdict.safe is False
    assert verdict.reason == reason
    resolver.assert_not_called()


def test_dns_failure_rejects():
    resolver = Mock(side_effect=socket.gaierror('no such host'))
    verdict = UrlSafetyValidator(resolver=resolver).validate('https://nope.invalid/')
    assert verdict == (False, 'dns_resolution_failed')


def test_empty_dns_answer_rejects():
    verdict = UrlSafetyValidator(resolver=Mock(return_value=[])).validate('https://empty.example.com/')
    assert verdict.reason == 'dns_resolution_failed'


def test_validation_is_idempotent():
    validator = _validator('93.184.216.34')
    first = validator.validate('https://example.com/a')
    second = validator.validate('https://example.com/a')
    assert first == second
