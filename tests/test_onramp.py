from urllib.parse import parse_qs, parse_qsl, urlsplit

import pytest

from rpcproxy.onramp import (
    CB_PAY_HOST,
    CB_PAY_PATH,
    DestinationWallet,
    ExperienceType,
    OnRampURLRequest,
    OnRampValidationError,
    generate_on_ramp_url,
    parse_on_ramp_request,
)

APP_ID = "CB_TEST_APP_ID"
ADDRESS = "0x1234567890123456789012345678901234567890"
PARTNER_USER_ID = "1234567890123456789012345678901234567890"


def _request(**kwargs):
    return OnRampURLRequest(
        app_id=APP_ID,
        destination_wallets=[DestinationWallet(address=ADDRESS)],
        partner_user_id=PARTNER_USER_ID,
        **kwargs,
    )


def test_generate_on_ramp_url():
    url = urlsplit(generate_on_ramp_url(CB_PAY_HOST, CB_PAY_PATH, _request()))
    query = dict(parse_qsl(url.query))
    assert url.scheme == "https"
    assert url.hostname == urlsplit(CB_PAY_HOST).hostname
    assert url.path == CB_PAY_PATH
    assert query["appId"] == APP_ID
    assert query["destinationWallets"] == '[{"address":"%s"}]' % ADDRESS
    assert query["partnerUserId"] == PARTNER_USER_ID


def test_required_parameters_only_when_optionals_absent():
    url = urlsplit(generate_on_ramp_url(CB_PAY_HOST, CB_PAY_PATH, _request()))
    assert [key for key, _ in parse_qsl(url.query)] == [
        "appId",
        "destinationWallets",
        "partnerUserId",
    ]


def test_optional_parameters_in_order():
    request = _request(
        default_network="ethereum",
        preset_crypto_amount=5,
        preset_fiat_amount=100,
        default_experience=ExperienceType.BUY,
        handling_requested_urls=True,
    )
    url = urlsplit(generate_on_ramp_url(CB_PAY_HOST, CB_PAY_PATH, request))
    pairs = parse_qsl(url.query)
    assert pairs[3:] == [
        ("defaultNetwork", "ethereum"),
        ("presetCryptoAmount", "5"),
        ("presetFiatAmount", "100"),
        ("defaultExperience", "buy"),
        ("handlingRequestedUrls", "true"),
    ]


def test_query_values_are_form_encoded():
    request = _request(default_network="a b~c*")
    url = generate_on_ramp_url(CB_PAY_HOST, CB_PAY_PATH, request)
    assert url.startswith("https://pay.coinbase.com/buy/select-asset?appId=CB_TEST_APP_ID&")
    assert url.endswith("&defaultNetwork=a+b%7Ec*")


def test_invalid_host_is_rejected():
    with pytest.raises(ValueError):
        generate_on_ramp_url("not a url", CB_PAY_PATH, _request())


def test_destination_wallet_skips_absent_fields():
    wallet = DestinationWallet(address=ADDRESS, assets=["ETH"])
    assert wallet.to_dict() == {"address": ADDRESS, "assets": ["ETH"]}


def test_parse_sets_app_id_and_ignores_body_app_id():
    body = {
        "appId": "from-body",
        "destinationWallets": [{"address": ADDRESS, "blockchains": ["ethereum"]}],
        "partnerUserId": PARTNER_USER_ID,
        "defaultExperience": "send",
        "presetFiatAmount": 20,
    }
    request = parse_on_ramp_request(body, APP_ID)
    assert request.app_id == APP_ID
    assert request.destination_wallets[0].blockchains == ["ethereum"]
    assert request.default_experience is ExperienceType.SEND
    assert request.preset_fiat_amount == 20
    assert request.handling_requested_urls is None


def test_parse_from_json_bytes():
    body = b'{"destinationWallets":[{"address":"0xabc"}],"partnerUserId":"p"}'
    request = parse_on_ramp_request(body, APP_ID)
    assert request.destination_wallets[0].address == "0xabc"
    assert request.partner_user_id == "p"


@pytest.mark.parametrize(
    "body",
    [
        b"not json",
        {"partnerUserId": PARTNER_USER_ID},
        {"destinationWallets": [{"address": ADDRESS}]},
        {"destinationWallets": [{}], "partnerUserId": PARTNER_USER_ID},
        {
            "destinationWallets": [{"address": ADDRESS}],
            "partnerUserId": PARTNER_USER_ID,
            "defaultExperience": "swap",
        },
        {
            "destinationWallets": [{"address": ADDRESS}],
            "partnerUserId": PARTNER_USER_ID,
            "presetCryptoAmount": -1,
        },
        {
            "destinationWallets": [{"address": ADDRESS}],
            "partnerUserId": PARTNER_USER_ID,
            "handlingRequestedUrls": "yes",
        },
    ],
)
def test_parse_rejects_malformed_bodies(body):
    with pytest.raises(OnRampValidationError):
        parse_on_ramp_request(body, APP_ID)


def test_validate_accepts_valid_request():
    request = _request()
    request.validate()
    assert len(request.destination_wallets) == 1


def test_validate_requires_a_wallet():
    request = OnRampURLRequest(destination_wallets=[], partner_user_id=PARTNER_USER_ID)
    with pytest.raises(OnRampValidationError):
        request.validate()


@pytest.mark.parametrize("partner_id", ["x" * 31, "x" * 51])
def test_validate_partner_user_id_length(partner_id):
    request = OnRampURLRequest(
        destination_wallets=[DestinationWallet(address=ADDRESS)], partner_user_id=partner_id
    )
    with pytest.raises(OnRampValidationError):
        request.validate()


def test_wallet_json_keeps_present_optionals():
    request = OnRampURLRequest(
        app_id=APP_ID,
        destination_wallets=[DestinationWallet(address=ADDRESS, supported_networks=["base"])],
        partner_user_id=PARTNER_USER_ID,
    )
    url = urlsplit(generate_on_ramp_url(CB_PAY_HOST, CB_PAY_PATH, request))
    assert parse_qs(url.query)["destinationWallets"] == [
        '[{"address":"%s","supported_networks":["base"]}]' % ADDRESS
    ]