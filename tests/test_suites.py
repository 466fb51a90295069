import os

import pytest

from parsec_smoke.suites import DEFAULT_SUITES, SUITES, SuiteContext, resolve_suites
from parsec_smoke.suites.ecc import run_ecc_sign
from parsec_smoke.suites.rng import run_random
from parsec_smoke.suites.rsa import run_rsa_decrypt, run_rsa_oaep_decrypt, run_rsa_sign
from parsec_smoke.tools.openssl import OpenSSL
from parsec_smoke.tools.parsec import ParsecTool
from parsec_smoke.workspace import scratch_workspace


@pytest.fixture
def ctx(service, config):
    with scratch_workspace() as ws:
        yield SuiteContext(
            tool=ParsecTool(["parsec-tool"], service).for_provider(1),
            openssl=OpenSSL(["openssl"], service),
            workspace=ws,
            config=config,
        )


def test_registry_defaults():
    assert [n for n, _ in resolve_suites(DEFAULT_SUITES)] == ["random", "rsa", "ecc"]
    assert set(SUITES) == {"random", "rsa", "ecc", "rsa-oaep", "rsa-sign"}
    with pytest.raises(ValueError):
        resolve_suites(["rsa", "dsa"])


def test_random_runs_when_advertised(ctx, service):
    tally = run_random(ctx)
    assert tally.failures == 0
    assert service.subcommands() == ["list-opcodes", "generate-random"]
    assert service.calls[-1][-2:] == ["--nbytes", "10"]


def test_random_soft_skip_without_opcode(ctx, service):
    service.opcodes[1].remove("PsaGenerateRandom")
    tally = run_random(ctx)
    assert tally.failures == 0
    assert "generate-random" not in service.subcommands()


def test_random_listing_failure_counts(ctx, service):
    service.failing.add("list-opcodes")
    assert run_random(ctx).failures == 1
    assert "generate-random" not in service.subcommands()


def test_rsa_roundtrip_ok(ctx, service):
    tally = run_rsa_decrypt(ctx)
    assert tally.failures == 0
    assert service.subcommands() == [
        "create-rsa-key", "list-keys", "export-public-key", "decrypt", "delete-key",
    ]
    assert not service.keys
    assert [s.name for s in tally.steps][-2] == "decrypted text matches the initial string"


def test_rsa_mismatch_is_one_failure_and_key_still_deleted(ctx, service):
    service.decrypt_suffix = b" tampered"
    tally = run_rsa_decrypt(ctx)
    assert tally.failures == 1
    assert service.subcommands()[-1] == "delete-key"
    assert not service.keys


def test_rsa_skips_encryption_when_export_failed(ctx, service):
    service.failing.add("export-public-key")
    tally = run_rsa_decrypt(ctx)
    assert tally.failures == 1
    assert "decrypt" not in service.subcommands()
    assert not any(c[0] == "openssl" for c in service.calls)
    assert service.subcommands()[-1] == "delete-key"


def test_rsa_encrypt_failure_stops_before_decrypt(ctx, service):
    service.failing.add("pkeyutl")
    tally = run_rsa_decrypt(ctx)
    assert tally.failures == 1
    assert "decrypt" not in service.subcommands()
    assert service.subcommands()[-1] == "delete-key"


def test_rsa_artifacts_removed_after_test(ctx, service):
    run_rsa_decrypt(ctx)
    assert os.listdir(ctx.workspace.root) == []


def test_rsa_oaep_variant(ctx, service):
    assert run_rsa_oaep_decrypt(ctx).failures == 0
    create = next(c for c in service.calls if "create-rsa-key" in c)
    assert create[-1] == "--oaep"
    assert "anta-key-rsa-oaep" in create
    enc = next(c for c in service.calls if c[:2] == ["openssl", "pkeyutl"])
    assert "rsa_padding_mode:oaep" in enc


def test_ecc_sign_verify_ok(ctx, service):
    tally = run_ecc_sign(ctx)
    assert tally.failures == 0
    assert service.subcommands() == [
        "create-ecc-key", "list-keys", "export-public-key", "sign", "delete-key",
    ]
    verify = next(c for c in service.calls if c[:2] == ["openssl", "dgst"])
    assert verify[2] == "-sha256"


def test_ecc_bad_signature_counts_once(ctx, service):
    service.tamper_signature = True
    tally = run_ecc_sign(ctx)
    assert tally.failures == 1
    assert tally.failed_steps[0].name == "openssl verify ECC signature"
    assert not service.keys


def test_ecc_sign_failure_still_deletes(ctx, service):
    service.failing.add("sign")
    tally = run_ecc_sign(ctx)
    assert tally.failures == 1
    assert service.subcommands()[-1] == "delete-key"


def test_rsa_signing_variant(ctx, service):
    assert run_rsa_sign(ctx).failures == 0
    create = next(c for c in service.calls if "create-rsa-key" in c)
    assert create[-1] == "--for-signing"


def test_run_id_makes_key_names_unique(service, config):
    with scratch_workspace() as ws:
        ctx = SuiteContext(
            tool=ParsecTool(["parsec-tool"], service).for_provider(1),
            openssl=OpenSSL(["openssl"], service),
            workspace=ws,
            config=config,
            run_id="c0ffee00",
        )
        assert run_ecc_sign(ctx).failures == 0
    assert ["--key-name", "anta-key-ecc-c0ffee00"] == service.calls[0][-2:]
