# zkemv

Prove that you hold a particular EMV payment card without revealing its
number. The card's ICC public key is recovered through the payment scheme's
certificate chain, the card signs a transaction whose unpredictable number is
a nonce, and a small contract keeps one nonce per registered card so that each
signature is accepted only once.

The package has no dependencies outside the standard library.

## Modules

- `zkemv.rsakey` – `RsaPublicKey(n, e)`, an RSA public key built directly or
  with `RsaPublicKey.from_bytes(modulus, exponent)` from big-endian bytes.
  `bits()` gives the modulus bit length and `encrypt_raw(data)` applies the
  bare public-key operation, as used to recover EMV certificates and
  signatures. Unusable keys (even modulus, exponent too small or too large,
  modulus over 4096 bits) raise `RsaKeyError`.
- `zkemv.tlv` – `Tlv` for BER-TLV data: `Tlv.parse(data)`, `to_bytes()`,
  `value_bytes()`, and path lookups with `find(path)` / `find_value(path)`
  where a path such as `"6F / A5 / 50"` starts with the object's own tag.
  `parse_tag_list(buf)` turns a PDOL/CDOL into `(tag, length)` pairs and
  `find_data_item(items, path)` searches template `70` and `77` objects.
  Malformed data raises `TlvError`.
- `zkemv.ca_keys` – `get_ca_key(rid, ca_idx)` looks up a built-in
  certification authority key (Visa, Mastercard, American Express, Discover,
  JCB, UnionPay, WEX, Interac) and returns `None` for an unknown pair.
- `zkemv.contract` – the identity contract: `ZkEmvAction`, `CardThings` (the
  ICC key and a signature over data ending in the nonce) and `ZkEmv` (the
  state: a nonce per ICC key hash).
- `zkemv.card` – talking to a card through any `CardTransport`: `Command`,
  `select_file`, `do_apdu`, `build_pdol_data`, `build_cdol_data`,
  `recover_issuer_key`, `recover_icc_key` and `read_card`, which runs the
  whole exchange.

## The contract

An identity is the hex ICC key hash followed by `@` and a contract name.
Registering an identity sets its nonce to 1; each successful verification
checks the card's signature over the current nonce and then increments it.

```python
from zkemv.contract import ZkEmv, ZkEmvAction

state = ZkEmv()

key_hash = registration_things.icc_key_hash()   # CardThings from read_card
identity = key_hash.hex() + "@zkemv"

print(state.execute(identity, ZkEmvAction.REGISTER_IDENTITY))
print(state.get_nonce(key_hash))   # 1

# Later, card_things is read with the card signing nonce 1:
print(state.execute(identity, ZkEmvAction.VERIFY_IDENTITY, card_things.to_bytes()))
print(state.get_nonce(key_hash))   # 2

# The state round-trips through its commitment.
restored = ZkEmv.from_commitment(state.commit())
```

Failures (a malformed identity, a duplicate registration, an unknown
identity, a key hash that does not match, a bad signature or a stale nonce)
raise `ContractError`. `CardThings.verify(nonce)` on its own raises
`VerificationError`, a subclass of `ContractError`.

`ZkEmvAction` and `CardThings` serialize with `to_bytes()` / `from_bytes()`.

## Reading a card

`read_card(card, nonce_getter)` needs an object with a
`transmit(apdu: bytes) -> bytes` method: it receives a command APDU and
returns the response APDU with its status word.

```python
from zkemv.card import read_card

class MyReader:
    def transmit(self, apdu: bytes) -> bytes:
        ...  # send to the reader, return the response

def nonce_for(key_hash: bytes) -> int:
    nonce = state.get_nonce(key_hash)
    if nonce is None:
        raise LookupError("card is not registered")
    return nonce

card_things = read_card(MyReader(), nonce_for)
```

The nonce getter receives the card's ICC key hash and returns the nonce the
card should sign (it must fit in 32 bits). Registration does not check the
signature, so any value such as `0` will do there.

`read_card` selects the payment directory (`1PAY.SYS.DDF01`, then
`2PAY.SYS.DDF01` if the first is not found), selects the application, sends
GET PROCESSING OPTIONS, reads the records listed in the AFL, recovers and
checks the issuer and ICC certificates against the CA key from `get_ca_key`,
asks the card to sign a GENERATE AC whose unpredictable number is the nonce,
and verifies the result before returning it. Any failing step raises
`CardError`; a status word other than `9000` raises `ApduError`, which
carries `payload` and `sw`. The APDU exchange and recovered data are logged
at INFO level on the `zkemv.card` logger.

## What it does not do

- It does not talk to card readers itself; you supply the `CardTransport`.
- It has no command-line program.
- It does not send transactions to a node, register the contract anywhere or
  produce proofs; `ZkEmv` is the contract logic and its state encoding only.