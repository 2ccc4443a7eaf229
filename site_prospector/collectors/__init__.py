"""
Collectors — gather the raw signals an analysis is scored on.

Submodules:
  lighthouse   — performance audit via Lighthouse CLI or PageSpeed Insights
  site_info    — page HTML fetch + content signal extraction (BeautifulSoup)
  freshness    — last-updated date from headers, sitemap and page markup
  competitors  — competitor keyword data (stub with fixture records)
  errors       — ``CollectorError``

Only the audit collector raises; the others convert failures into their
result type's error variant.

Credential placement (.env, gitignored):
  SITE_PROSPECTOR_PAGESPEED_API_KEY  — PageSpeed Insights API key (optional)
"""
