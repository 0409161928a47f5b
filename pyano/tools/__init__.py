"""Tools that agents can describe and call: search, scraping and shell commands."""