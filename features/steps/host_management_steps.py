"""
Step definitions for Netmagis client feature tests.
"""

from behave import given, then, when

from netmagis_client.core.client import NetmagisClient
from netmagis_client.core.exceptions import AuthError, NetmagisError, ValidationError
from netmagis_client.providers.fake_netmagis import FakeNetmagis
from netmagis_client.providers.mock_provider import MockTransport


@given("a Netmagis server with CAS authentication")
def step_impl(context):
    """Start an in-memory Netmagis."""
    context.server = FakeNetmagis(context.base_url)
    context.transport = MockTransport(responder=context.server)


@given('the host "{fqdn}" is declared with address "{ip}"')
def step_impl(context, fqdn, ip):
    context.server.add_host(fqdn, ip)


@when('I connect with username "{username}" and password "{password}"')
def step_impl(context, username, password):
    try:
        context.client = NetmagisClient(
            context.base_url, username, password, transport=context.transport
        )
    except AuthError as e:
        context.error = e


@given('I am connected as "{username}" with password "{password}"')
def step_impl(context, username, password):
    context.client = NetmagisClient(
        context.base_url, username, password, transport=context.transport
    )
    assert context.server.authenticated


@then('the connection fails at the "{stage}" step')
def step_impl(context, stage):
    assert isinstance(context.error, AuthError), f"expected AuthError, got {context.error!r}"
    assert context.error.stage.value == stage, context.error.stage


@when('I search for "{identifier}"')
def step_impl(context, identifier):
    context.record = context.client.search(identifier)


@then('the host "{fqdn}" is found with address "{ip}"')
def step_impl(context, fqdn, ip):
    assert context.record is not None, "host not found"
    assert context.record.fqdn == fqdn, context.record.fqdn
    assert context.record.ip_address == ip, context.record.ip_address


@then("no host is found")
def step_impl(context):
    assert context.record is None, context.record


@then("the result is an alias")
def step_impl(context):
    assert context.record.is_alias


@then("the result is not an alias")
def step_impl(context):
    assert not context.record.is_alias


@then('the host comment is "{comment}"')
def step_impl(context, comment):
    assert context.record.comment == comment, context.record.comment


@when('I declare the host "{fqdn}" with address "{ip}"')
def step_impl(context, fqdn, ip):
    try:
        context.client.create_host(fqdn, ip)
    except NetmagisError as e:
        context.error = e


@then("the operation is refused as a duplicate")
def step_impl(context):
    assert isinstance(context.error, ValidationError), repr(context.error)
    assert "already declared" in str(context.error)


@when('I set the comment of "{fqdn}" to "{comment}"')
def step_impl(context, fqdn, comment):
    host = context.client.get_host(fqdn)
    assert host is not None, f"{fqdn} does not exist"
    host.options.comment = comment
    context.client.update_host(fqdn, host.record_id, host.options)


@when('I add the alias "{alias}" to "{target}"')
def step_impl(context, alias, target):
    context.client.create_alias(alias, target)


@when('I remove the host "{fqdn}"')
def step_impl(context, fqdn):
    context.client.delete_host(fqdn)
