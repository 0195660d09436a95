#!/usr/bin/env python3
import argparse
import os
import sys

import requests

# Issue an access token through POST /admin/tokens and print its short link.
# Usage: ADMIN_PASSWORD=... python scripts/issue_token.py "Launch" --days 14 --qr launch.png


def parse_args(argv=None):
    p = argparse.ArgumentParser(description='Issue a portfolio access token')
    p.add_argument('campaign', help='campaign label')
    p.add_argument('--days', type=int, default=None, help='lifetime in days (server default: 30)')
    p.add_argument('--variant', default=None)
    p.add_argument('--destination', default=None, help='destination path override')
    p.add_argument('--base-url', default=os.environ.get('BASE_URL', 'http://localhost:5000'))
    p.add_argument('--password', default=os.environ.get('ADMIN_PASSWORD'), help='admin secret (env ADMIN_PASSWORD)')
    p.add_argument('--qr', default=None, help='also save the short-link QR PNG to this path')
    return p.parse_args(argv)


def issue_token(base_url, password, campaign, days=None, variant=None, destination=None):
    body = {'campaign': campaign}
    if days is not None:
        body['days'] = days
    if variant:
        body['variant'] = variant
    if destination:
        body['destinationPath'] = destination
    r = requests.post(
        f"{base_url.rstrip('/')}/admin/tokens",
        headers={'Authorization': f'Bearer {password}'},
        json=body,
        timeout=30,
    )
    if r.status_code != 201:
        raise RuntimeError(f"create token failed {r.status_code}: {r.text[:200]}")
    return r.json()


def fetch_qr(base_url, password, token_id):
    r = requests.get(
        f"{base_url.rstrip('/')}/admin/tokens/{token_id}/qr",
        headers={'Authorization': f'Bearer {password}'},
        timeout=30,
    )
    if r.status_code != 200:
        raise RuntimeError(f"qr fetch failed {r.status_code}: {r.text[:200]}")
    return r.content


def main(argv=None):
    args = parse_args(argv)
    if not args.password:
        print('ERROR: missing --password or env ADMIN_PASSWORD', file=sys.stderr)
        return 1
    try:
        token = issue_token(args.base_url, args.password, args.campaign,
                            days=args.days, variant=args.variant, destination=args.destination)
        png = fetch_qr(args.base_url, args.password, token['token']) if args.qr else None
    except (RuntimeError, requests.RequestException) as e:
        print(f'ERROR: {e}', file=sys.stderr)
        return 2
    print('token:', token['token'])
    print('shortLink:', token['shortLink'])
    print('expiresAt:', token['expiresAt'])
    if png is not None:
        with open(args.qr, 'wb') as f:
            f.write(png)
        print('PNG saved to', args.qr)
    return 0


if __name__ == '__main__':
    sys.exit(main())
