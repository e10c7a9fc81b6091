import logging

import pytest

from conftest import ScriptedPrompter
from oktad.errors import (
    AuthError,
    FactorSelectionError,
    MfaInvalidCodeError,
    MfaTimeoutError,
    UnsupportedFactorError,
    UserCancelled,
)
from oktad.mfa import (
    PUSH_MAX_ATTEMPTS,
    PUSH_POLL_INTERVAL,
    MfaChallengeHandler,
    PushFactor,
    TotpFactor,
    UnsupportedFactor,
    VerifyResult,
    VerifyStatus,
    parse_factor,
    select_factor,
)

PUSH = PushFactor('opf1', 'push', 'OKTA')
GOOGLE = TotpFactor('uft1', 'token:software:totp', 'GOOGLE')
OKTA_TOTP = TotpFactor('ost1', 'token:software:totp', 'OKTA')
SMS = UnsupportedFactor('sms1', 'sms', 'OKTA')

WAITING = VerifyResult(VerifyStatus.WAITING, summary='WAITING')
REJECTED = VerifyResult(VerifyStatus.REJECTED, summary='Your passcode doesn\'t match our records.')


def success(token='session-token'):
    return VerifyResult(VerifyStatus.SUCCESS, session_token=token)


class ScriptedClient:
    def __init__(self, results):
        self.results = list(results)
        self.calls = []

    def verify_factor(self, state_token, factor, pass_code=None):
        self.calls.append((state_token, factor, pass_code))
        return self.results.pop(0)


def make_handler(client, prompter=None):
    sleeps = []
    echoed = []
    handler = MfaChallengeHandler(
        client,
        prompter or ScriptedPrompter(),
        logger=logging.getLogger('oktad.test.mfa'),
        sleep=sleeps.append,
        echo=echoed.append,
    )
    return handler, sleeps, echoed


class TestParseFactor:
    def test_known_kinds(self):
        assert parse_factor({'id': 'a', 'factorType': 'push', 'provider': 'OKTA'}) == PushFactor('a', 'push', 'OKTA')
        assert isinstance(parse_factor({'id': 'b', 'factorType': 'token:software:totp'}), TotpFactor)

    def test_unknown_kind_is_unsupported(self):
        factor = parse_factor({'id': 'c', 'factorType': 'u2f', 'provider': 'FIDO'})
        assert isinstance(factor, UnsupportedFactor)
        assert factor.factor_type == 'u2f'


class TestSelectFactor:
    def test_single_factor_never_prompts(self):
        prompter = ScriptedPrompter()
        assert select_factor((OKTA_TOTP,), prompter, echo=lambda _: None) is OKTA_TOTP
        assert prompter.messages == []

    def test_lists_factors_and_uses_index(self):
        echoed = []
        prompter = ScriptedPrompter(['1'])
        chosen = select_factor((PUSH, GOOGLE, OKTA_TOTP), prompter, echo=echoed.append)

        assert chosen is GOOGLE
        assert echoed == ['[0] Push notification', '[1] Google Authenticator', '[2] Okta Verify']
        assert prompter.messages == ['Select your second factor: ']

    @pytest.mark.parametrize('answer', ['2', '-1', '99', 'push', ''])
    def test_invalid_index(self, answer):
        with pytest.raises(FactorSelectionError) as excinfo:
            select_factor((PUSH, GOOGLE), ScriptedPrompter([answer]), echo=lambda _: None)
        assert excinfo.value.message == 'wrong mfa factor'

    def test_cancelled_selection(self, cancelled):
        with pytest.raises(UserCancelled):
            select_factor((PUSH, GOOGLE), ScriptedPrompter([cancelled]), echo=lambda _: None)

    def test_no_factors(self):
        with pytest.raises(AuthError):
            select_factor((), ScriptedPrompter(), echo=lambda _: None)


class TestPush:
    def test_succeeds_after_polling(self):
        client = ScriptedClient([WAITING, WAITING, success()])
        handler, sleeps, _ = make_handler(client)

        assert handler.verify('state', PUSH) == 'session-token'
        assert len(client.calls) == 3
        assert sleeps == [PUSH_POLL_INTERVAL, PUSH_POLL_INTERVAL]
        assert all(pass_code is None for _, _, pass_code in client.calls)

    def test_gives_up_after_fifteen_attempts(self):
        client = ScriptedClient([WAITING] * (PUSH_MAX_ATTEMPTS + 5))
        handler, sleeps, _ = make_handler(client)

        with pytest.raises(MfaTimeoutError):
            handler.verify('state', PUSH)

        assert PUSH_MAX_ATTEMPTS == 15
        assert len(client.calls) == 15
        assert set(sleeps) == {2}
        assert len(sleeps) == 14

    def test_rejected_push_fails_immediately(self):
        client = ScriptedClient([WAITING, VerifyResult(VerifyStatus.REJECTED, summary='REJECTED')])
        handler, _, _ = make_handler(client)

        with pytest.raises(AuthError):
            handler.verify('state', PUSH)
        assert len(client.calls) == 2

    def test_provider_timeout(self):
        client = ScriptedClient([VerifyResult(VerifyStatus.TIMEOUT, summary='TIMEOUT')])
        handler, _, _ = make_handler(client)

        with pytest.raises(MfaTimeoutError):
            handler.verify('state', PUSH)


class TestTotp:
    def test_first_code_accepted(self):
        client = ScriptedClient([success('tok')])
        handler, _, _ = make_handler(client, ScriptedPrompter(['123456']))

        assert handler.verify('state', GOOGLE) == 'tok'
        assert client.calls == [('state', GOOGLE, '123456')]

    def test_second_code_accepted_after_wrong_first(self):
        client = ScriptedClient([REJECTED, success('tok')])
        prompter = ScriptedPrompter(['000000', '654321'])
        handler, _, echoed = make_handler(client, prompter)

        assert handler.verify('state', OKTA_TOTP) == 'tok'
        assert [call[2] for call in client.calls] == ['000000', '654321']
        assert 'Invalid MFA code, please try again.' in echoed

    def test_two_wrong_codes(self):
        client = ScriptedClient([REJECTED, REJECTED])
        handler, _, _ = make_handler(client, ScriptedPrompter(['000000', '111111']))

        with pytest.raises(MfaInvalidCodeError):
            handler.verify('state', OKTA_TOTP)
        assert len(client.calls) == 2

    def test_cancel_aborts_without_counting_an_attempt(self, cancelled):
        client = ScriptedClient([REJECTED])
        handler, _, _ = make_handler(client, ScriptedPrompter(['000000', cancelled]))

        with pytest.raises(UserCancelled):
            handler.verify('state', OKTA_TOTP)
        assert len(client.calls) == 1


def test_unsupported_factor_fails_before_network():
    client = ScriptedClient([])
    handler, _, _ = make_handler(client)

    with pytest.raises(UnsupportedFactorError):
        handler.verify('state', SMS)
    assert client.calls == []
