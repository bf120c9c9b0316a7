#!/usr/bin/env python3
"""
Test suite for the Netmagis client

This module tests validation, configuration, the CAS login, the form
protocol and the host operations against canned Netmagis pages.
"""

import os
import shutil
import tempfile
import unittest
from unittest.mock import MagicMock, patch

import requests
import yaml

from netmagis_client.cli.main import build_parser, main, options_from_args
from netmagis_client.core.client import NetmagisClient
from netmagis_client.core.exceptions import (
    AuthError,
    AuthStage,
    ConfigError,
    OperationError,
    OperationFailure,
    TransportError,
    ValidationError,
)
from netmagis_client.core.importer import HostImporter
from netmagis_client.core.models import (
    HostOptions,
    StructuredError,
    Success,
    UnexpectedBody,
)
from netmagis_client.core.operations import OperationCaller, classify, join_url
from netmagis_client.parsers.csv import CSVParser
from netmagis_client.providers.cas import CASAuthenticator
from netmagis_client.providers.fake_netmagis import FakeNetmagis
from netmagis_client.providers.http_client import RequestsTransport
from netmagis_client.providers.mock_provider import MockTransport
from netmagis_client.utils.config import get_netmagis_settings, load_config
from netmagis_client.utils.validators import split_fqdn, validate_fqdn, validate_ip

BASE_URL = "https://netmagis.example.com/netmagis"
CAS_URL = "https://cas.example.com/cas/login?service=https%3A%2F%2Fnetmagis.example.com%2Fnetmagis%2Fstart"
CALLBACK_URL = "https://netmagis.example.com/netmagis/start?ticket=ST-1-abc"

LOGIN_PAGE = """<html><body>
<form id="fm1" method="post">
<input id="username" name="username" type="text" value=""/>
<input id="password" name="password" type="password" value=""/>
<input type="hidden" name="execution" value="e1s1-token"/>
<input type="hidden" name="_eventId" value="submit"/>
</form>
</body></html>"""

LOGIN_FAILED_PAGE = """<html><body>
<div class="errors"><span>Authentication attempt has failed, likely due to invalid credentials. Please verify and try again. </span></div>
</body></html>"""

SEARCH_FOUND_PAGE = """<html><body>
<h2>Search</h2>
<p>host.example.com is a host in view default</p>
<table>
<tr><td class="tab-text10">Name</td><td class="tab-text10">host.example.com</td></tr>
<tr><td class="tab-text10">IP address</td><td class="tab-text10">192.0.2.10</td></tr>
<tr><td class="tab-text10">Comment</td><td class="tab-text10">build server</td></tr>
<tr><td class="tab-text10">SMTP emit right</td><td class="tab-text10">Yes</td></tr>
<tr><td class="tab-text10">Aliases</td><td class="tab-text10">www.example.com ci.example.com</td></tr>
</table>
</body></html>"""

SEARCH_NOT_FOUND_PAGE = """<html><body>
<h2>Search</h2>
<p>String 'ghost.example.com' not found</p>
</body></html>"""

EDIT_FORM_PAGE = """<html><body>
<form method="post" action="mod">
<input type="hidden" name="action" value="store">
<input type="hidden" name="confirm" value="no">
<input type="hidden" name="idrr" value="4242">
<input type="hidden" name="idview" value="1">
<input type="hidden" name="name" value="host">
<input type="hidden" name="domain" value="example.com">
<input type="text" name="ttl" value="3600">
<input type="text" name="mac" value="00:11:22:33:44:55">
<select name="iddhcpprof"><option value="0">No profile</option><option value="3" selected>pxe</option></select>
<select name="hinfo"><option value="PC/Unix">PC/Unix</option><option value="Printer" selected>Printer</option></select>
<input type="text" name="comment" value="build server">
<input type="text" name="respname" value="Jane Doe">
<input type="text" name="respmail" value="jane@example.com">
<input type="checkbox" name="sendsmtp" value="1" checked>
<input type="submit" value="Store">
</form>
</body></html>"""


def error_page(message):
    return (
        "<html><body><h2>Error!</h2>\n"
        f'<blockquote><FONT COLOR="#FF0000">"{message}"</FONT></blockquote>\n'
        "</body></html>"
    )


NAME_NOT_FOUND_PAGE = error_page("Name 'host' does not exist")


def queue_login(transport):
    """Queue the four answers of a successful CAS login."""
    transport.queue(302, headers={"Location": CAS_URL})
    transport.queue(200, LOGIN_PAGE)
    transport.queue(302, "", {"Location": CALLBACK_URL})
    transport.queue(200, "<html><body>Welcome</body></html>")
    return transport


def make_client():
    transport = queue_login(MockTransport())
    client = NetmagisClient(BASE_URL, "jdoe", "secret", transport=transport)
    transport.requests.clear()
    return client, transport


class TestValidators(unittest.TestCase):
    """Test the validation functions."""

    def test_validate_fqdn_valid(self):
        valid_fqdns = [
            "example.com",
            "host.example.com",
            "web-01.dc1.example.org",
            "123.example.com",
        ]

        for fqdn in valid_fqdns:
            with self.subTest(fqdn=fqdn):
                self.assertTrue(validate_fqdn(fqdn))

    def test_validate_fqdn_invalid(self):
        invalid_fqdns = [
            "",  # Empty
            "single",  # Single label
            ".example.com",  # Starts with dot
            "example.com.",  # Ends with dot
            "example..com",  # Consecutive dots
            "example-.com",  # Ends with hyphen
            "-example.com",  # Starts with hyphen
            "a" * 64 + ".com",  # Label too long
            "192.168.1.1",  # Address
            "host name.example.com",  # Space
        ]

        for fqdn in invalid_fqdns:
            with self.subTest(fqdn=fqdn):
                self.assertFalse(validate_fqdn(fqdn))

    def test_validate_ip(self):
        for address in ["192.168.1.1", "0.0.0.0", "2001:db8::1", "::1"]:
            with self.subTest(address=address):
                self.assertTrue(validate_ip(address))

        for address in ["", "256.1.2.3", "1.2.3", "host.example.com", "2001:db8::g"]:
            with self.subTest(address=address):
                self.assertFalse(validate_ip(address))

    def test_split_fqdn_rejoins(self):
        for fqdn in ["host.example.com", "a.b", "web-01.dc1.example.org"]:
            with self.subTest(fqdn=fqdn):
                label, remainder = split_fqdn(fqdn)
                self.assertEqual(f"{label}.{remainder}", fqdn)
                self.assertNotIn(".", label)

    def test_split_fqdn_without_domain(self):
        with self.assertRaises(ValidationError):
            split_fqdn("localhost")


class TestConfig(unittest.TestCase):
    """Test configuration loading."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.config_file = os.path.join(self.temp_dir, "config.yaml")

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def write_config(self, config):
        with open(self.config_file, "w") as f:
            yaml.dump(config, f)

    def test_load_settings(self):
        self.write_config(
            {"netmagis": {"url": BASE_URL + "/", "username": "jdoe", "password": "secret"}}
        )

        settings = get_netmagis_settings(load_config(self.config_file))

        self.assertEqual(settings.url, BASE_URL)
        self.assertEqual(settings.username, "jdoe")
        self.assertEqual(settings.password, "secret")
        self.assertEqual(settings.timeout, 60)

    def test_missing_fields(self):
        complete = {"url": BASE_URL, "username": "jdoe", "password": "secret"}
        for key in complete:
            with self.subTest(missing=key):
                section = dict(complete)
                del section[key]
                with self.assertRaises(ConfigError) as ctx:
                    get_netmagis_settings({"netmagis": section})
                self.assertIn(key, str(ctx.exception))

    def test_missing_file(self):
        with self.assertRaises(ConfigError):
            load_config(os.path.join(self.temp_dir, "absent.yaml"))

    def test_invalid_yaml(self):
        with open(self.config_file, "w") as f:
            f.write("netmagis: [unclosed\n")
        with self.assertRaises(ConfigError):
            load_config(self.config_file)

    def test_client_from_config(self):
        self.write_config(
            {"netmagis": {"url": BASE_URL, "username": "jdoe", "password": "secret"}}
        )
        transport = queue_login(MockTransport())

        client = NetmagisClient.from_config(self.config_file, transport=transport)

        self.assertEqual(client.base_url, BASE_URL)
        self.assertEqual(transport.posts[0].fields["username"], "jdoe")


class TestCASAuthenticator(unittest.TestCase):
    """Test the CAS login ceremony."""

    def test_successful_login(self):
        transport = queue_login(MockTransport())

        login_url = CASAuthenticator(transport).establish(BASE_URL, "jdoe", "secret")

        self.assertEqual(login_url, CAS_URL)
        self.assertEqual(
            [(r.method, r.url) for r in transport.requests],
            [
                ("GET", f"{BASE_URL}/start"),
                ("GET", CAS_URL),
                ("POST", CAS_URL),
                ("GET", CALLBACK_URL),
            ],
        )
        self.assertEqual(
            transport.requests[2].fields,
            {
                "_eventId": "submit",
                "username": "jdoe",
                "password": "secret",
                "execution": "e1s1-token",
            },
        )

    def assert_stage(self, transport, stage):
        with self.assertRaises(AuthError) as ctx:
            CASAuthenticator(transport).establish(BASE_URL, "jdoe", "secret")
        self.assertEqual(ctx.exception.stage, stage)

    def test_start_without_redirect(self):
        self.assert_stage(MockTransport().queue(200, "<html></html>"), AuthStage.NO_REDIRECT)

    def test_start_unreachable(self):
        transport = MockTransport().queue_error(TransportError("connection refused"))
        self.assert_stage(transport, AuthStage.NO_REDIRECT)

    def test_login_page_unreachable(self):
        transport = MockTransport()
        transport.queue(302, headers={"Location": CAS_URL}).queue(503, "down")
        self.assert_stage(transport, AuthStage.LOGIN_PAGE_UNREACHABLE)

    def test_token_not_found(self):
        transport = MockTransport()
        transport.queue(301, headers={"Location": CAS_URL}).queue(200, "<form></form>")
        self.assert_stage(transport, AuthStage.TOKEN_NOT_FOUND)

    def test_invalid_credentials(self):
        transport = MockTransport()
        transport.queue(302, headers={"Location": CAS_URL}).queue(200, LOGIN_PAGE)
        transport.queue(200, LOGIN_FAILED_PAGE)

        self.assert_stage(transport, AuthStage.INVALID_CREDENTIALS)
        self.assertEqual(len(transport.requests), 3)

    def test_callback_failure(self):
        transport = MockTransport()
        transport.queue(302, headers={"Location": CAS_URL}).queue(200, LOGIN_PAGE)
        transport.queue(302, "", {"Location": CALLBACK_URL})
        transport.queue_error(TransportError("connection reset"))

        self.assert_stage(transport, AuthStage.CALLBACK_FAILED)

    def test_client_construction_fails_on_auth_error(self):
        transport = MockTransport().queue(200, "<html></html>")
        with self.assertRaises(AuthError):
            NetmagisClient(BASE_URL, "jdoe", "secret", transport=transport)


class TestOperationCaller(unittest.TestCase):
    """Test form submission and answer classification."""

    def test_join_url(self):
        self.assertEqual(join_url(BASE_URL, "/search"), f"{BASE_URL}/search")
        self.assertEqual(join_url(BASE_URL + "/", "mod/"), f"{BASE_URL}/mod")

    def test_classify(self):
        accept = lambda body: "Host has been added." in body

        self.assertEqual(
            classify(error_page("Invalid MAC address"), accept),
            StructuredError("Invalid MAC address"),
        )
        self.assertEqual(classify("<p>Host has been added.</p>", accept), Success("<p>Host has been added.</p>"))
        self.assertEqual(classify("<p>Welcome</p>", accept), UnexpectedBody("<p>Welcome</p>"))

    def test_error_banner_takes_precedence(self):
        body = error_page("IP address already in use") + "Host has been added."
        result = classify(body, lambda body: True)
        self.assertEqual(result, StructuredError("IP address already in use"))

    def test_server_rejected(self):
        transport = MockTransport().queue(200, error_page("Invalid MAC address"))
        caller = OperationCaller(BASE_URL, transport)

        with self.assertRaises(OperationError) as ctx:
            caller.call("/add", {"action": "add-host"}, lambda body: True)

        self.assertEqual(ctx.exception.kind, OperationFailure.SERVER_REJECTED)
        self.assertEqual(ctx.exception.message, "Invalid MAC address")
        self.assertEqual(transport.requests[0].url, f"{BASE_URL}/add")

    def test_unexpected_response_keeps_body(self):
        body = "<html><body>Maintenance in progress</body></html>"
        caller = OperationCaller(BASE_URL, MockTransport().queue(200, body))

        with self.assertRaises(OperationError) as ctx:
            caller.call("/del", {}, lambda body: "has been removed" in body)

        self.assertEqual(ctx.exception.kind, OperationFailure.UNEXPECTED_RESPONSE)
        self.assertEqual(ctx.exception.body, body)
        self.assertIn("Maintenance in progress", str(ctx.exception))


class TestSearch(unittest.TestCase):
    """Test host search."""

    def setUp(self):
        self.client, self.transport = make_client()

    def test_search_found(self):
        self.transport.queue(200, SEARCH_FOUND_PAGE)

        record = self.client.search("host.example.com")

        self.assertEqual(record.name, "host")
        self.assertEqual(record.domain, "example.com")
        self.assertEqual(record.ip_address, "192.0.2.10")
        self.assertEqual(record.comment, "build server")
        self.assertTrue(record.smtp_allowed)
        self.assertEqual(record.aliases, ["www.example.com", "ci.example.com"])
        self.assertFalse(record.is_alias)
        self.assertEqual(self.transport.posts[0].fields, {"q": "host.example.com"})

    def test_search_alias(self):
        self.transport.queue(200, SEARCH_FOUND_PAGE)

        record = self.client.search("www.example.com")

        self.assertTrue(record.is_alias)
        self.assertEqual(record.fqdn, "host.example.com")

    def test_search_by_address(self):
        self.transport.queue(200, SEARCH_FOUND_PAGE)

        record = self.client.search("192.0.2.10")

        self.assertEqual(record.fqdn, "host.example.com")
        self.assertFalse(record.is_alias)

    def test_search_not_found(self):
        self.transport.queue(200, SEARCH_NOT_FOUND_PAGE)
        self.assertIsNone(self.client.search("ghost.example.com"))

    def test_search_invalid_identifier(self):
        with self.assertRaises(ValidationError):
            self.client.search("not a host")
        self.assertEqual(self.transport.requests, [])

    def test_search_unexpected_page(self):
        self.transport.queue(200, "<html><body>Welcome</body></html>")
        with self.assertRaises(OperationError) as ctx:
            self.client.search("host.example.com")
        self.assertEqual(ctx.exception.kind, OperationFailure.UNEXPECTED_RESPONSE)


class TestGetHost(unittest.TestCase):
    """Test reading the modification form."""

    def setUp(self):
        self.client, self.transport = make_client()

    def test_get_host(self):
        self.transport.queue(200, EDIT_FORM_PAGE)

        host = self.client.get_host("host.example.com")

        self.assertEqual(
            self.transport.posts[0].fields,
            {"action": "edit", "name": "host", "domain": "example.com"},
        )
        self.assertEqual(host.record_id, "4242")
        self.assertEqual(host.fqdn, "host.example.com")
        self.assertEqual(host.options.ttl, 3600)
        self.assertEqual(host.options.dhcp_profile_id, 3)
        self.assertEqual(host.options.device_type, "Printer")
        self.assertEqual(host.options.owner_mail, "jane@example.com")
        self.assertTrue(host.options.smtp_allowed)

    def test_get_host_does_not_exist(self):
        self.transport.queue(200, NAME_NOT_FOUND_PAGE)
        self.assertIsNone(self.client.get_host("host.example.com"))

    def test_get_host_other_errors_propagate(self):
        self.transport.queue(200, error_page("Permission denied for domain 'example.com'"))
        with self.assertRaises(OperationError) as ctx:
            self.client.get_host("host.example.com")
        self.assertEqual(ctx.exception.kind, OperationFailure.SERVER_REJECTED)


class TestCreateHost(unittest.TestCase):
    """Test host creation."""

    def setUp(self):
        self.client, self.transport = make_client()

    def test_create_host_defaults(self):
        self.transport.queue(200, NAME_NOT_FOUND_PAGE)
        self.transport.queue(200, "<p>Host has been added.</p>")

        self.client.create_host("host.example.com", "192.0.2.10")

        add = self.transport.posts[1]
        self.assertEqual(add.url, f"{BASE_URL}/add")
        self.assertEqual(
            add.fields,
            {
                "action": "add-host",
                "idview": "1",
                "addr": "192.0.2.10",
                "name": "host",
                "domain": "example.com",
                "naddr": "1",
                "confirm": "yes",
                "ttl": "",
                "mac": "",
                "iddhcpprof": "0",
                "hinfo": "PC/Unix",
                "comment": "",
                "respname": "",
                "respmail": "",
            },
        )
        self.assertNotIn("sendsmtp", add.fields)

    def test_create_host_with_smtp(self):
        self.transport.queue(200, NAME_NOT_FOUND_PAGE)
        self.transport.queue(200, "<p>Host has been added.</p>")

        self.client.create_host(
            "host.example.com", "192.0.2.10", HostOptions(ttl=300, smtp_allowed=True)
        )

        fields = self.transport.posts[1].fields
        self.assertEqual(fields["sendsmtp"], "1")
        self.assertEqual(fields["ttl"], "300")

    def test_create_duplicate_refused(self):
        self.transport.queue(200, EDIT_FORM_PAGE)

        with self.assertRaises(ValidationError):
            self.client.create_host("host.example.com", "192.0.2.11")

        self.assertEqual([r.url for r in self.transport.posts], [f"{BASE_URL}/mod"])

    def test_create_duplicate_allowed(self):
        self.transport.queue(200, "<p>Host has been added.</p>")

        self.client.create_host("host.example.com", "192.0.2.11", allow_multiple=True)

        # no existence lookup, the address is added directly
        self.assertEqual([r.url for r in self.transport.posts], [f"{BASE_URL}/add"])
        self.assertEqual(self.transport.posts[0].fields["addr"], "192.0.2.11")

    def test_create_unexpected_answer(self):
        self.transport.queue(200, NAME_NOT_FOUND_PAGE)
        self.transport.queue(200, "<p>Host has been modified.</p>")

        with self.assertRaises(OperationError) as ctx:
            self.client.create_host("host.example.com", "192.0.2.10")
        self.assertEqual(ctx.exception.kind, OperationFailure.UNEXPECTED_RESPONSE)

    def test_create_invalid_input(self):
        with self.assertRaises(ValidationError):
            self.client.create_host("host", "192.0.2.10")
        with self.assertRaises(ValidationError):
            self.client.create_host("host.example.com", "192.0.2.300")
        self.assertEqual(self.transport.requests, [])


class TestModifications(unittest.TestCase):
    """Test update, deletion and aliases."""

    def setUp(self):
        self.client, self.transport = make_client()

    def test_update_host(self):
        self.transport.queue(200, "<p>The modification has been stored in database.</p>")

        self.client.update_host("host.example.com", "4242", HostOptions(comment="moved"))

        post = self.transport.posts[0]
        self.assertEqual(post.url, f"{BASE_URL}/mod")
        self.assertEqual(post.fields["action"], "store")
        self.assertEqual(post.fields["confirm"], "yes")
        self.assertEqual(post.fields["idrr"], "4242")
        self.assertEqual(post.fields["comment"], "moved")
        self.assertNotIn("sendsmtp", post.fields)

    def test_update_round_trip_keeps_values(self):
        self.transport.queue(200, EDIT_FORM_PAGE)
        self.transport.queue(200, "<p>The modification has been stored in database.</p>")

        host = self.client.get_host("host.example.com")
        self.client.update_host(host.fqdn, host.record_id, host.options)

        fields = self.transport.posts[1].fields
        self.assertEqual(fields["ttl"], "3600")
        self.assertEqual(fields["iddhcpprof"], "3")
        self.assertEqual(fields["hinfo"], "Printer")
        self.assertEqual(fields["sendsmtp"], "1")

    def test_delete_host(self):
        self.transport.queue(200, "<p>Host host.example.com has been removed.</p>")

        self.client.delete_host("host.example.com")

        post = self.transport.posts[0]
        self.assertEqual(post.url, f"{BASE_URL}/del")
        self.assertEqual(post.fields, {"idviews": "1", "name": "host", "domain": "example.com"})

    def test_delete_rejected(self):
        self.transport.queue(200, error_page("Name 'host' does not exist"))
        with self.assertRaises(OperationError):
            self.client.delete_host("host.example.com")

    def test_create_alias(self):
        self.transport.queue(200, "<p>The alias has been added.</p>")

        self.client.create_alias("www.example.com", "host.example.org")

        post = self.transport.posts[0]
        self.assertEqual(post.url, f"{BASE_URL}/add")
        self.assertEqual(
            post.fields,
            {
                "action": "add-alias",
                "name": "www",
                "domain": "example.com",
                "nameref": "host",
                "domainref": "example.org",
                "idview": "1",
            },
        )

    def test_context_manager_closes_transport(self):
        with self.client:
            pass
        self.assertTrue(self.transport.closed)


class TestHostImporter(unittest.TestCase):
    """Test bulk declaration."""

    def setUp(self):
        self.client, self.transport = make_client()
        self.records = [
            {"fqdn": "new.example.com", "ip": "192.0.2.20", "comment": "new"},
            {"fqdn": "host.example.com", "ip": "192.0.2.10", "comment": ""},
        ]

    def test_dry_run(self):
        self.transport.queue(200, NAME_NOT_FOUND_PAGE).queue(200, EDIT_FORM_PAGE)

        result = HostImporter(self.client).process_records(self.records, dry_run=True)

        self.assertTrue(result)
        self.assertEqual(len(self.transport.posts), 2)

    def test_import_creates_missing_hosts(self):
        self.transport.queue(200, NAME_NOT_FOUND_PAGE).queue(200, EDIT_FORM_PAGE)
        self.transport.queue(200, "<p>Host has been added.</p>")

        result = HostImporter(self.client).process_records(self.records)

        self.assertTrue(result)
        # one edit form read per record, none repeated by create_host
        self.assertEqual(
            [r.url for r in self.transport.posts],
            [f"{BASE_URL}/mod", f"{BASE_URL}/mod", f"{BASE_URL}/add"],
        )
        add = self.transport.posts[-1]
        self.assertEqual(add.fields["name"], "new")
        self.assertEqual(add.fields["comment"], "new")

    def test_import_reports_failures(self):
        self.transport.queue(200, NAME_NOT_FOUND_PAGE).queue(200, EDIT_FORM_PAGE)
        self.transport.queue(200, error_page("IP address 192.0.2.20 is already used"))

        self.assertFalse(HostImporter(self.client).process_records(self.records))


class TestEndToEnd(unittest.TestCase):
    """Full workflow against the in-memory Netmagis."""

    def setUp(self):
        self.server = FakeNetmagis(BASE_URL)
        self.server.add_host("web.example.com", "192.0.2.10")
        self.client = NetmagisClient(
            BASE_URL, "jdoe", "secret", transport=MockTransport(responder=self.server)
        )

    def test_wrong_password(self):
        with self.assertRaises(AuthError) as ctx:
            NetmagisClient(
                BASE_URL, "jdoe", "wrong", transport=MockTransport(responder=FakeNetmagis(BASE_URL))
            )
        self.assertEqual(ctx.exception.stage, AuthStage.INVALID_CREDENTIALS)

    def test_host_lifecycle(self):
        self.client.create_host(
            "db.example.com", "192.0.2.20", HostOptions(comment="database", smtp_allowed=True)
        )
        record = self.client.search("db.example.com")
        self.assertEqual(record.ip_address, "192.0.2.20")
        self.assertEqual(record.comment, "database")
        self.assertTrue(record.smtp_allowed)

        host = self.client.get_host("db.example.com")
        host.options.smtp_allowed = False
        host.options.ttl = 600
        self.client.update_host(host.fqdn, host.record_id, host.options)
        record = self.client.search("192.0.2.20")
        self.assertFalse(record.smtp_allowed)
        self.assertEqual(record.ttl, 600)

        self.client.create_alias("sql.example.com", "db.example.com")
        record = self.client.search("sql.example.com")
        self.assertTrue(record.is_alias)
        self.assertEqual(record.fqdn, "db.example.com")
        self.assertEqual(self.client.search("db.example.com").aliases, ["sql.example.com"])

        self.client.delete_host("db.example.com")
        self.assertIsNone(self.client.search("db.example.com"))
        self.assertIsNone(self.client.get_host("db.example.com"))

    def test_duplicate_address_rejected_by_server(self):
        with self.assertRaises(OperationError) as ctx:
            self.client.create_host("other.example.com", "192.0.2.10")
        self.assertEqual(ctx.exception.kind, OperationFailure.SERVER_REJECTED)
        self.assertIn("192.0.2.10", ctx.exception.message)


class TestCLI(unittest.TestCase):
    """Test the command line interface."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.config_file = os.path.join(self.temp_dir, "config.yaml")
        with open(self.config_file, "w") as f:
            yaml.dump(
                {"netmagis": {"url": BASE_URL, "username": "jdoe", "password": "secret"}},
                f,
            )

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_options_from_args_overlay(self):
        args = build_parser().parse_args(["update", "host.example.com", "--ttl", "600", "--no-smtp"])
        base = HostOptions(comment="kept", smtp_allowed=True)

        options = options_from_args(args, base)

        self.assertEqual(options.ttl, 600)
        self.assertEqual(options.comment, "kept")
        self.assertFalse(options.smtp_allowed)

    def test_options_from_args_defaults(self):
        args = build_parser().parse_args(["add", "host.example.com", "192.0.2.10"])
        self.assertEqual(options_from_args(args), HostOptions())

    @patch("netmagis_client.cli.main.NetmagisClient")
    def test_main_add(self, client_class):
        client = client_class.return_value.__enter__.return_value

        with self.assertRaises(SystemExit) as ctx:
            main(["-c", self.config_file, "add", "host.example.com", "192.0.2.10", "--smtp"])

        self.assertEqual(ctx.exception.code, 0)
        client_class.assert_called_once_with(BASE_URL, "jdoe", "secret", timeout=60)
        client.create_host.assert_called_once_with(
            "host.example.com",
            "192.0.2.10",
            HostOptions(smtp_allowed=True),
            allow_multiple=False,
        )

    @patch("netmagis_client.cli.main.NetmagisClient")
    def test_main_search_not_found(self, client_class):
        client_class.return_value.__enter__.return_value.search.return_value = None

        with self.assertRaises(SystemExit) as ctx:
            main(["-c", self.config_file, "search", "ghost.example.com"])

        self.assertEqual(ctx.exception.code, 1)

    @patch("netmagis_client.cli.main.NetmagisClient")
    def test_main_auth_error(self, client_class):
        client_class.side_effect = AuthError(AuthStage.INVALID_CREDENTIALS, "invalid login or password")

        with self.assertRaises(SystemExit) as ctx:
            main(["-c", self.config_file, "delete", "host.example.com"])

        self.assertEqual(ctx.exception.code, 1)


class TestCSVParser(unittest.TestCase):
    """Test reading hosts to declare from CSV."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.csv_file = os.path.join(self.temp_dir, "hosts.csv")

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def write_csv(self, content):
        with open(self.csv_file, "w") as f:
            f.write(content)

    def test_parse_valid_rows(self):
        self.write_csv(
            "FQDN,IP,Comment\n"
            "web.example.com,192.0.2.10,frontend\n"
            "v6.example.com,2001:db8::1,\n"
        )

        records = CSVParser(self.csv_file).parse()

        self.assertEqual(
            records,
            [
                {"fqdn": "web.example.com", "ip": "192.0.2.10", "comment": "frontend"},
                {"fqdn": "v6.example.com", "ip": "2001:db8::1", "comment": ""},
            ],
        )

    def test_invalid_rows_are_skipped(self):
        self.write_csv(
            "FQDN,IP\n"
            "not a host,192.0.2.10\n"
            "web.example.com,999.0.0.1\n"
            "db.example.com,192.0.2.20\n"
        )

        records = CSVParser(self.csv_file).parse()

        self.assertEqual([r["fqdn"] for r in records], ["db.example.com"])

    def test_missing_columns(self):
        self.write_csv("Name,Address\nweb.example.com,192.0.2.10\n")

        with self.assertRaises(ValueError):
            CSVParser(self.csv_file).parse()

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            CSVParser(os.path.join(self.temp_dir, "nope.csv")).parse()


class TestRequestsTransport(unittest.TestCase):
    """Test the requests-backed transport."""

    def setUp(self):
        self.session = MagicMock(spec=requests.Session)
        self.transport = RequestsTransport(timeout=5, session=self.session)

    def test_post_form_never_follows_redirects(self):
        response = MagicMock(status_code=302, headers={"Location": CAS_URL}, text="")
        self.session.request.return_value = response

        res = self.transport.post_form(BASE_URL + "/search", {"q": "host.example.com"})

        self.session.request.assert_called_once_with(
            "POST",
            BASE_URL + "/search",
            timeout=5,
            allow_redirects=False,
            data={"q": "host.example.com"},
        )
        self.assertTrue(res.is_redirect)
        self.assertEqual(res.headers["location"], CAS_URL)

    def test_request_exception_becomes_transport_error(self):
        self.session.request.side_effect = requests.ConnectionError("connection refused")

        with self.assertRaises(TransportError):
            self.transport.get(BASE_URL + "/start")

    def test_close_closes_session(self):
        self.transport.close()
        self.session.close.assert_called_once_with()


if __name__ == "__main__":
    unittest.main(verbosity=2)
