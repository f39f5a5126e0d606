from typing import List

import torch
import torch.nn as nn
import torch.nn.functional as F

# A document as list of sentences, each a (tokens, encoding_size) tensor.
# Used both for the input encodings and for the errors of the input.
EncodedDocument = List[torch.Tensor]

RECURRENT_TYPES = {
    "gru": nn.GRU,
    "lstm": nn.LSTM,
    "rnn": nn.RNN,
}


class AttentionPooling(nn.Module):
    """Reduce a sequence of states to their attention-weighted sum."""

    def __init__(self, input_size, attention_size):
        super().__init__()
        self.transform = nn.Linear(input_size, attention_size)
        self.context = nn.Parameter(torch.empty(attention_size).uniform_(-0.1, 0.1))

    def forward(self, states, dropout=0.0):
        # states: (batch, seq_len, input_size)
        attention = torch.tanh(self.transform(states))
        attention = F.dropout(attention, p=dropout, training=self.training and dropout > 0.0)
        scores = torch.softmax(attention @ self.context, dim=1)
        return (scores.unsqueeze(-1) * states).sum(dim=1)


class HANHead(nn.Module):
    """
    A Hierarchical Attention Network classifying a whole document.

    A bidirectional RNN with attention encodes each sentence from its tokens,
    a second one encodes the document from its sentences, and a linear layer
    gives the logits of the classes.
    """

    def __init__(self, input_size, output_size, attention_size=20, recurrent_type="gru", hidden_size=None):
        super().__init__()
        if recurrent_type not in RECURRENT_TYPES:
            raise ValueError(f"Unknown recurrent type: {recurrent_type}")

        hidden_size = hidden_size or input_size
        rnn_cls = RECURRENT_TYPES[recurrent_type]

        self.input_size = input_size
        self.output_size = output_size

        self.tokens_rnn = rnn_cls(input_size, hidden_size, batch_first=True, bidirectional=True)
        self.tokens_attention = AttentionPooling(2 * hidden_size, attention_size)
        self.sentences_rnn = rnn_cls(2 * hidden_size, hidden_size, batch_first=True, bidirectional=True)
        self.sentences_attention = AttentionPooling(2 * hidden_size, attention_size)
        self.output = nn.Linear(2 * hidden_size, output_size)

    def forward(self, document: EncodedDocument, rnn_dropout=0.0, attention_dropout=0.0, output_dropout=0.0):
        sentences = []
        for tokens in document:
            tokens = F.dropout(tokens, p=rnn_dropout, training=self.training and rnn_dropout > 0.0)
            states, _ = self.tokens_rnn(tokens.unsqueeze(0))
            sentences.append(self.tokens_attention(states, dropout=attention_dropout))

        sentences = F.dropout(
            torch.cat(sentences).unsqueeze(0), p=rnn_dropout, training=self.training and rnn_dropout > 0.0)
        states, _ = self.sentences_rnn(sentences)
        encoding = self.sentences_attention(states, dropout=attention_dropout).squeeze(0)

        encoding = F.dropout(encoding, p=output_dropout, training=self.training and output_dropout > 0.0)

        return self.output(encoding)
